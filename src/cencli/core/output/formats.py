"""Output formats and their coarse output-type classification."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from cencli.core.errors import InvalidFormatError


class OutputType(str, Enum):
    """Coarse classification used for command compatibility checks.

    - DATA: buffered structured data (json, yaml, ndjson, tree)
    - SHORT: a custom human rendering
    - TEMPLATE: a user-supplied template
    """

    DATA = "data"
    SHORT = "short"
    TEMPLATE = "template"


class OutputFormat(str, Enum):
    """Concrete output formats accepted by ``--output-format``."""

    JSON = "json"
    YAML = "yaml"
    NDJSON = "ndjson"
    TREE = "tree"
    SHORT = "short"
    TEMPLATE = "template"

    @property
    def output_type(self) -> OutputType:
        """Return the output type this format belongs to."""
        return _FORMAT_TYPES[self]

    @classmethod
    def parse(cls, text: str) -> OutputFormat:
        """Parse a format string.

        Raises
        ------
        InvalidFormatError
            If ``text`` is not a known format
        """
        try:
            return cls(text)
        except ValueError:
            raise InvalidFormatError(text, available_output_formats()) from None

    def __str__(self) -> str:
        return self.value


_FORMAT_TYPES = {
    OutputFormat.JSON: OutputType.DATA,
    OutputFormat.YAML: OutputType.DATA,
    OutputFormat.NDJSON: OutputType.DATA,
    OutputFormat.TREE: OutputType.DATA,
    OutputFormat.SHORT: OutputType.SHORT,
    OutputFormat.TEMPLATE: OutputType.TEMPLATE,
}

DATA_FORMATS = tuple(f for f in OutputFormat if f.output_type is OutputType.DATA)

# Format every non-data output type renders with
FIXED_FORMATS = {
    OutputType.SHORT: OutputFormat.SHORT,
    OutputType.TEMPLATE: OutputFormat.TEMPLATE,
}


def available_output_formats() -> list[str]:
    """List every output format string in declaration order."""
    return [f.value for f in OutputFormat]


def formats_for_types(types: Iterable[OutputType]) -> list[str]:
    """Expand output types into the format strings they can render.

    Parameters
    ----------
    types : Iterable[OutputType]
        Supported output types, in declaration order

    Returns
    -------
    list[str]
        Format strings without duplicates, in the order the types were given
    """
    formats: list[str] = []
    for output_type in types:
        if output_type is OutputType.DATA:
            candidates = [f.value for f in DATA_FORMATS]
        else:
            candidates = [FIXED_FORMATS[output_type].value]
        for candidate in candidates:
            if candidate not in formats:
                formats.append(candidate)
    return formats

"""Output format resolution and validation.

The effective format of an invocation is decided from three inputs: the
persisted preference from the configuration, the command's declared default
output type, and the ``--output-format`` flag when the user gave it.
"""

from __future__ import annotations

from collections.abc import Iterable

from cencli.core.errors import (
    InvalidFormatError,
    StreamingConflictError,
    StreamingNotSupportedError,
    UnsupportedFormatError,
)
from cencli.core.output.formats import (
    FIXED_FORMATS,
    OutputFormat,
    OutputType,
    available_output_formats,
    formats_for_types,
)


def resolve_output_format(
    persisted: str,
    default_type: OutputType,
    explicit_value: str | None,
    explicitly_set: bool,
) -> str:
    """Resolve the effective output format for one invocation.

    Parameters
    ----------
    persisted : str
        Format from the configuration store
    default_type : OutputType
        The command's declared default output type
    explicit_value : str | None
        Value of ``--output-format`` as seen on the command line
    explicitly_set : bool
        Whether the user gave ``--output-format`` on this invocation. This is
        tracked by the parser, so giving the default value still counts.

    Returns
    -------
    str
        The format string, never validated or coerced
    """
    if explicitly_set and explicit_value is not None:
        return explicit_value
    if default_type is OutputType.DATA:
        return persisted
    return FIXED_FORMATS[default_type].value


def validate_output_format(value: str, supported_types: Iterable[OutputType]) -> None:
    """Check that a command can render ``value``.

    Raises
    ------
    InvalidFormatError
        ``value`` is not a known format; lists every available format
    UnsupportedFormatError
        ``value`` is known but outside the command's supported types; lists
        only the formats the command can render
    """
    supported_types = list(supported_types)
    try:
        output_format = OutputFormat(value)
    except ValueError:
        raise InvalidFormatError(value, available_output_formats()) from None

    if output_format.output_type not in supported_types:
        raise UnsupportedFormatError(value, formats_for_types(supported_types))


def validate_streaming_mode(
    streaming_enabled: bool,
    streaming_explicit: bool,
    output_format_explicit: bool,
    supports_streaming: bool,
) -> None:
    """Reject flag combinations that streaming cannot honour.

    Parameters
    ----------
    streaming_enabled : bool
        Streaming requested by flag or configuration
    streaming_explicit : bool
        ``--streaming`` given on the command line
    output_format_explicit : bool
        ``--output-format`` given on the command line
    supports_streaming : bool
        Whether the command can stream at all

    Raises
    ------
    StreamingConflictError
        Streaming is on, from the flag or the configuration, and a format was
        chosen explicitly. This holds for commands that cannot stream too.
    StreamingNotSupportedError
        ``--streaming`` was given to a command that cannot stream
    """
    if streaming_enabled and output_format_explicit:
        raise StreamingConflictError
    if streaming_explicit and streaming_enabled and not supports_streaming:
        raise StreamingNotSupportedError

"""Output formats, format resolution and rendering.

Usage
-----
>>> from cencli.core.output import OutputStrategy, Verbosity
>>>
>>> # In a command:
>>> output = ctx.obj.output
>>> output.warning("Some results were truncated")
"""

from cencli.core.output.formats import (
    OutputFormat,
    OutputType,
    available_output_formats,
    formats_for_types,
)
from cencli.core.output.resolver import (
    resolve_output_format,
    validate_output_format,
    validate_streaming_mode,
)
from cencli.core.output.scoping import FlagScope
from cencli.core.output.strategy import OutputStrategy
from cencli.core.output.verbosity import Verbosity

__all__ = [
    "FlagScope",
    "OutputFormat",
    "OutputStrategy",
    "OutputType",
    "Verbosity",
    "available_output_formats",
    "formats_for_types",
    "resolve_output_format",
    "validate_output_format",
    "validate_streaming_mode",
]

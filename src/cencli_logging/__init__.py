"""Logging setup shared by every cencli package.

Loggers live under the ``cencli`` namespace and default to WARNING on a file
handler so that stdout stays reserved for command data. ``--debug`` switches the
CLI logger to DEBUG and mirrors records onto stderr.
"""

from cencli_logging.config import (
    LOGGER_NAMESPACE,
    CommandLoggerAdapter,
    configure_logger,
    get_cli_logger,
    get_command_logger,
    get_log_file_path,
)
from cencli_logging.filters import CommandContextFilter
from cencli_logging.formatters import SafeFormatter

__all__ = [
    "LOGGER_NAMESPACE",
    "CommandContextFilter",
    "CommandLoggerAdapter",
    "SafeFormatter",
    "configure_logger",
    "get_cli_logger",
    "get_command_logger",
    "get_log_file_path",
]

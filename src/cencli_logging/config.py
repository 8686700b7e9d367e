"""Logger configuration for the cencli CLI."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from cencli_logging.filters import CommandContextFilter
from cencli_logging.formatters import SafeFormatter

LOGGER_NAMESPACE = "cencli"

_DEFAULT_LEVEL = "WARNING"


def get_log_file_path(name: str = "cli") -> Path:
    """Return the path of a named log file under the user cache directory.

    Parameters
    ----------
    name : str
        Base name of the log file, without extension

    Returns
    -------
    Path
        ``$XDG_CACHE_HOME/cencli/<name>.log`` (``~/.cache`` when unset)
    """
    cache_home = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(cache_home) / "cencli" / f"{name}.log"


def get_cli_logger(name: str) -> logging.Logger:
    """Get a logger inside the cencli namespace.

    Module names that already start with ``cencli`` are used as-is so that
    ``get_cli_logger(__name__)`` works from any package module.
    """
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    if name.startswith("cencli_"):
        return logging.getLogger(f"{LOGGER_NAMESPACE}.{name.split('_', 1)[1]}")
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


def configure_logger(
    name: str = LOGGER_NAMESPACE,
    level: str | int | None = None,
    to_console: bool = False,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure a logger with cencli handlers and filters.

    Existing handlers are removed so the function can be called once per
    invocation without duplicating output.

    Parameters
    ----------
    name : str
        Logger name to configure
    level : str | int | None
        Log level; defaults to ``CENCLI_LOG_LEVEL`` or WARNING
    to_console : bool
        Mirror records onto stderr
    log_file : str | Path | None
        File to append records to; ``None`` disables file logging

    Returns
    -------
    logging.Logger
        The configured logger
    """
    logger = logging.getLogger(name)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.filters.clear()

    if level is None:
        level = os.environ.get("CENCLI_LOG_LEVEL", _DEFAULT_LEVEL)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    logger.addFilter(CommandContextFilter())
    logger.propagate = False

    formatter = SafeFormatter()

    if to_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        logger.addHandler(console)

    if log_file is not None:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
        except OSError as e:
            # Unwritable cache dir must not break the CLI
            logger.debug("File logging disabled for %s: %s", path, e)
        else:
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


class CommandLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter stamping records with the running command.

    Unlike the stdlib adapter, ``extra`` passed at the call site is merged
    with the adapter's own instead of being replaced.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def get_command_logger(name: str, cmd: str) -> CommandLoggerAdapter:
    """Get a cencli logger whose records carry ``cmd``."""
    return CommandLoggerAdapter(get_cli_logger(name), {"cmd": cmd})

"""Logging filters."""

import logging


class CommandContextFilter(logging.Filter):
    """Stamp every record with the name of the running command."""

    def __init__(self, cmd: str = "-") -> None:
        super().__init__()
        self.cmd = cmd

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "cmd"):
            record.cmd = self.cmd
        return True

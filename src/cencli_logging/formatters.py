"""Log record formatters."""

import logging


class SafeFormatter(logging.Formatter):
    """Formatter that tolerates records without the ``cmd`` field.

    Records emitted outside of a command (startup, config loading) carry no
    command name; they are rendered with ``-`` instead of raising ``KeyError``.
    """

    DEFAULT_FORMAT = "%(asctime)s %(levelname)-5s [%(cmd)s] %(name)s: %(message)s"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt or self.DEFAULT_FORMAT, datefmt or "%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "cmd"):
            record.cmd = "-"
        fields = getattr(record, "fields", None)
        message = super().format(record)
        if fields:
            rendered = " ".join(f"{key}={value!r}" for key, value in fields.items())
            message = f"{message} {rendered}"
        return message

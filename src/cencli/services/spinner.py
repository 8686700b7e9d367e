"""Interactive progress indicator.

Calling code only sees the :class:`Indicator` protocol. Whether a real
spinner runs is decided once, in :func:`start_indicator`; the no-op variant
accepts the same calls and discards them.
"""

from __future__ import annotations

import sys
import threading
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape


@runtime_checkable
class Indicator(Protocol):
    """Start/stop/set-message capability of a progress indicator."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def set_message(self, message: str) -> None: ...


class NoopIndicator:
    """Indicator that ignores every call."""

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def set_message(self, message: str) -> None:
        pass


class SpinnerIndicator:
    """Terminal spinner on stderr backed by a ``rich`` status.

    Parameters
    ----------
    message : str
        Initial message next to the spinner
    console : Console | None
        Console to draw on; a stderr console by default
    """

    SPINNER = "dots"

    def __init__(self, message: str = "", console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)
        self._status = self._console.status(escape(message), spinner=self.SPINNER)
        self._lock = threading.Lock()
        self._running = False

    def start(self) -> None:
        with self._lock:
            if not self._running:
                self._status.start()
                self._running = True

    def stop(self) -> None:
        with self._lock:
            if self._running:
                self._status.stop()
                self._running = False

    def set_message(self, message: str) -> None:
        with self._lock:
            self._status.update(status=escape(message))


def spinner_enabled(no_spinner: bool, quiet: bool, is_tty: bool | None = None) -> bool:
    """Whether a real spinner should be shown.

    The spinner needs an interactive stderr and is suppressed by
    ``--no-spinner`` and ``--quiet``.
    """
    if no_spinner or quiet:
        return False
    if is_tty is None:
        is_tty = sys.stderr.isatty()
    return is_tty


def start_indicator(enabled: bool, message: str = "") -> Indicator:
    """Create and start the indicator variant selected by ``enabled``."""
    indicator: Indicator = SpinnerIndicator(message) if enabled else NoopIndicator()
    indicator.start()
    return indicator

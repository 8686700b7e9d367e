"""Human-facing output strategy.

Command data goes to stdout through the renderers; everything meant for a
person reading the terminal (errors, warnings, response metadata, hints) goes
through :class:`OutputStrategy` onto stderr so that piping stdout into another
tool stays clean.
"""

from __future__ import annotations

import os
import sys

import click

from cencli.core.constants import EnvVars, Icons
from cencli.core.output.verbosity import Verbosity


class OutputStrategy:
    """Unified stderr output with verbosity contracts.

    | Level    | Flag      | User Sees                              |
    |----------|-----------|----------------------------------------|
    | QUIET    | -q        | Errors                                 |
    | NORMAL   | (default) | + Warnings, response metadata, hints   |
    | DEBUG    | --debug   | + Diagnostic detail                    |

    Parameters
    ----------
    verbosity : Verbosity
        Current verbosity level
    colored : bool | None
        Whether to style output (auto-detected from stderr if None)
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.NORMAL,
        colored: bool | None = None,
    ) -> None:
        self._verbosity = verbosity
        self._colored = colored if colored is not None else self._detect_color()
        self._last_was_blank = False

    @property
    def verbosity(self) -> Verbosity:
        """Current verbosity level."""
        return self._verbosity

    @property
    def colored(self) -> bool:
        """Whether styling is applied."""
        return self._colored

    def _emit(
        self,
        message: str,
        *,
        style: dict | None = None,
    ) -> None:
        """Emit a message on stderr with optional styling.

        Consecutive blank lines are coalesced into one.
        """
        if not message or message.strip() == "":
            if self._last_was_blank:
                return
            click.echo("", err=True)
            self._last_was_blank = True
            return

        rendered = click.style(message, **style) if style and self._colored else message
        click.echo(rendered, err=True, color=self._colored)
        self._last_was_blank = False

    def error(self, title: str, message: str) -> None:
        """Display a titled error. Always visible.

        Parameters
        ----------
        title : str
            Short canonical error title, rendered as ``[Title]``
        message : str
            Error detail
        """
        self._emit(f"[{title}]", style={"fg": "red", "bold": True})
        self._emit(message, style={"fg": "red"})

    def warning(self, message: str) -> None:
        """Display warning message (yellow). Visible at NORMAL+."""
        if self._verbosity >= Verbosity.NORMAL:
            self._emit(f"{Icons.WARNING} {message}", style={"fg": "yellow"})

    def success(self, message: str) -> None:
        """Display success message (green). Visible at NORMAL+."""
        if self._verbosity >= Verbosity.NORMAL:
            self._emit(message, style={"fg": "green"})

    def info(self, message: str) -> None:
        """Display info message. Visible at NORMAL+."""
        if self._verbosity >= Verbosity.NORMAL:
            self._emit(message)

    def detail(self, message: str) -> None:
        """Display metadata detail (dimmed). Visible at NORMAL+."""
        if self._verbosity >= Verbosity.NORMAL:
            self._emit(message, style={"dim": True})

    def debug(self, message: str) -> None:
        """Display debug message (cyan). Visible at DEBUG only."""
        if self._verbosity >= Verbosity.DEBUG:
            self._emit(f"[DEBUG] {message}", style={"fg": "cyan"})

    def plain(self, message: str) -> None:
        """Display plain message. Always visible."""
        self._emit(message)

    def usage(self, text: str) -> None:
        """Display command usage after an error. Always visible."""
        self._emit("")
        self._emit(text)

    @staticmethod
    def _detect_color() -> bool:
        if os.environ.get(EnvVars.NO_COLOR):
            return False
        return sys.stderr.isatty()

    @classmethod
    def from_click_context(cls, ctx: click.Context) -> OutputStrategy:
        """Create OutputStrategy from Click context."""
        cencli_ctx = ctx.find_root().obj
        config = getattr(cencli_ctx, "loaded_config", None)
        if config is None:
            return cls()
        verbosity = Verbosity.from_flags(config.quiet, config.debug)
        colored = False if config.no_color else None
        return cls(verbosity=verbosity, colored=colored)

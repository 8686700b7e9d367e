"""Version command."""

from __future__ import annotations

import platform
import sys

import click

from cencli import __version__
from cencli.core.command import CencliCommand
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.output.formats import OutputType


def version_info() -> dict[str, str]:
    return {
        "version": __version__,
        "python": platform.python_version(),
        "platform": f"{sys.platform}/{platform.machine() or 'unknown'}",
    }


@click.command(
    name="version",
    cls=CencliCommand,
    default_output_type=OutputType.DATA,
    supported_output_types=(OutputType.DATA, OutputType.SHORT),
    short_help="Show version information",
)
@pass_context
@handle_exceptions
def command(ctx: Context) -> None:
    """Show the cencli version."""
    info = version_info()
    ctx.print_data(
        info,
        short=lambda colored: (
            f"censys version {info['version']} "
            f"(python {info['python']}, {info['platform']})"
        ),
    )

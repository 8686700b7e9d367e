"""Shell completion script generation."""

from __future__ import annotations

import click
from click.shell_completion import get_completion_class

from cencli.core.command import CencliCommand
from cencli.core.constants import SUPPORTED_SHELLS
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.output.formats import OutputType

COMPLETE_VAR = "_CENSYS_COMPLETE"


@click.command(
    name="completion",
    cls=CencliCommand,
    default_output_type=OutputType.SHORT,
    supported_output_types=(OutputType.SHORT,),
    short_help="Generate a shell completion script",
)
@click.argument("shell", type=click.Choice(SUPPORTED_SHELLS))
@pass_context
@handle_exceptions
def command(ctx: Context, shell: str) -> None:
    """Print the completion script for SHELL.

    \b
    Examples:
      eval "$(censys completion bash)"
      censys completion zsh > "${fpath[1]}/_censys"
      censys completion fish > ~/.config/fish/completions/censys.fish
    """
    root = click.get_current_context().find_root()
    completion_class = get_completion_class(shell)
    completer = completion_class(root.command, {}, root.info_name or "censys", COMPLETE_VAR)
    click.echo(completer.source())

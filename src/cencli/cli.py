"""Main CLI entry point for cencli.

This module provides the root ``censys`` command group, declares the
persistent global flags and attaches every subcommand.
"""

import sys

import click

from cencli import __version__
from cencli.commands import aggregate, completion, config, credits, org, search, version, view
from cencli.commands.completion import COMPLETE_VAR
from cencli.core.command import CencliGroup, global_options, show_group_help
from cencli.core.context import Context
from cencli.core.decorators import handle_exceptions
from cencli.core.output.formats import OutputType
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)

PROG_NAME = "censys"


@click.group(
    name=PROG_NAME,
    cls=CencliGroup,
    invoke_without_command=True,
    default_output_type=OutputType.SHORT,
    supported_output_types=(OutputType.SHORT,),
    context_settings={"help_option_names": ["-h", "--help"]},
)
@global_options
@click.pass_context
@handle_exceptions
def cli(ctx: click.Context) -> None:
    """Censys Platform command line interface.

    \b
    Search and view hosts, certificates and web properties, check credit
    balances and manage configuration.
    """
    cencli_ctx = ctx.ensure_object(Context)
    ctx.call_on_close(cencli_ctx.close)
    # Loaded up front so an invalid config file fails before any command runs
    _ = cencli_ctx.config
    cencli_ctx.configure_logging()
    logger.debug(
        "cencli %s starting",
        __version__,
        extra={"fields": {"argv": sys.argv[1:]}},
    )

    if ctx.invoked_subcommand is None:
        show_group_help(ctx)


cli.add_command(search.command)
cli.add_command(view.command)
cli.add_command(aggregate.command)
cli.add_command(credits.command)
cli.add_command(org.group)
cli.add_command(config.group)
cli.add_command(completion.command)
cli.add_command(version.command)


def main() -> None:
    """Serve as the main entry point for the CLI."""
    # Keep a stable completion env var name regardless of how invoked.
    cli(prog_name=PROG_NAME, complete_var=COMPLETE_VAR)


if __name__ == "__main__":
    main()

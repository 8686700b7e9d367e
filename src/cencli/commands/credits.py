"""Credits command."""

from __future__ import annotations

import click

from cencli.commands.options import org_id_option
from cencli.core.command import CencliCommand
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.errors import ConflictingFlagsError
from cencli.core.output.formats import OutputType
from cencli.formatting import short


@click.command(
    name="credits",
    cls=CencliCommand,
    default_output_type=OutputType.DATA,
    supported_output_types=(OutputType.DATA, OutputType.SHORT),
    short_help="Show credit balance",
)
@org_id_option("Organization ID to query credits for (overrides the stored ID)")
@click.option(
    "--free-user",
    "-u",
    is_flag=True,
    default=False,
    help="Show free user credits instead of organization credits",
)
@pass_context
@handle_exceptions
def command(ctx: Context, org_id: str | None, free_user: bool) -> None:
    """Show the credit balance of your organization or free user account.

    Without --org-id the stored organization ID is used; when none is stored
    the free user balance is shown.
    """
    if org_id and free_user:
        raise ConflictingFlagsError("org-id", "free-user")

    target = None if free_user else (org_id or ctx.credentials.org_id)
    logger = ctx.logger("credits")
    service = ctx.credits_service

    if target:
        result = ctx.with_progress(
            logger,
            "Fetching organization credits...",
            lambda: service.organization_credits(target),
        )
        render = short.organization_credits
    else:
        result = ctx.with_progress(
            logger,
            "Fetching user credits...",
            service.user_credits,
        )
        render = short.user_credits

    ctx.print_response_meta(result.meta)
    ctx.print_data(result.data, short=lambda colored: render(result.data, colored))

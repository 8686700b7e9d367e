"""Organization commands.

By default these use the stored organization ID; ``--org-id`` queries a
different one. Set the default with ``censys config org-id <org-id>``.
"""

from __future__ import annotations

import click

from cencli.commands.options import org_id_option
from cencli.core.command import CencliGroup, show_group_help
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.errors import NoOrgIDError
from cencli.core.output.formats import OutputType
from cencli.formatting import short


def _resolve_org_id(ctx: Context, org_id: str | None) -> str:
    resolved = org_id or ctx.credentials.org_id
    if not resolved:
        raise NoOrgIDError
    return resolved


@click.group(
    name="org",
    cls=CencliGroup,
    invoke_without_command=True,
    default_output_type=OutputType.SHORT,
    supported_output_types=(OutputType.SHORT,),
    short_help="Manage and view organization details",
)
@click.pass_context
def group(ctx: click.Context) -> None:
    """Manage and view organization details."""
    if ctx.invoked_subcommand is None:
        show_group_help(ctx)


@group.command(
    name="details",
    default_output_type=OutputType.SHORT,
    supported_output_types=(OutputType.DATA, OutputType.SHORT),
)
@org_id_option()
@pass_context
@handle_exceptions
def details(ctx: Context, org_id: str | None) -> None:
    """Show details of an organization."""
    target = _resolve_org_id(ctx, org_id)
    service = ctx.organizations_service
    result = ctx.with_progress(
        ctx.logger("org details"),
        "Fetching organization details...",
        lambda: service.details(target),
    )
    ctx.print_response_meta(result.meta)
    ctx.print_data(
        result.data,
        short=lambda colored: short.organization_details(result.data, colored),
    )


@group.command(
    name="credits",
    default_output_type=OutputType.SHORT,
    supported_output_types=(OutputType.DATA, OutputType.SHORT),
)
@org_id_option()
@pass_context
@handle_exceptions
def org_credits(ctx: Context, org_id: str | None) -> None:
    """Show the credit balance of an organization."""
    target = _resolve_org_id(ctx, org_id)
    service = ctx.credits_service
    result = ctx.with_progress(
        ctx.logger("org credits"),
        "Fetching organization credits...",
        lambda: service.organization_credits(target),
    )
    ctx.print_response_meta(result.meta)
    ctx.print_data(
        result.data,
        short=lambda colored: short.organization_credits(result.data, colored),
    )


@group.command(
    name="members",
    default_output_type=OutputType.SHORT,
    supported_output_types=(OutputType.DATA, OutputType.SHORT),
)
@org_id_option()
@pass_context
@handle_exceptions
def members(ctx: Context, org_id: str | None) -> None:
    """List the members of an organization.

    Shows each member's email, name, roles and login times. All pages are
    fetched.
    """
    target = _resolve_org_id(ctx, org_id)
    service = ctx.organizations_service
    result = ctx.with_progress(
        ctx.logger("org members"),
        "Fetching organization members...",
        lambda: service.members(target),
    )
    ctx.print_response_meta(result.meta)
    ctx.print_data(
        result.data,
        short=lambda colored: short.organization_members(result.members, colored),
    )

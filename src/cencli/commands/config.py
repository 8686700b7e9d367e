"""Configuration commands.

Handles ``config.yaml`` and the stored credentials.
"""

from __future__ import annotations

import click

from cencli.core.command import CencliGroup, show_group_help
from cencli.core.config import mask_token
from cencli.core.constants import Icons
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.errors import UsageError
from cencli.core.output.formats import OutputType
from cencli.core.param_types import ORG_ID
from cencli.core.paths import DataPaths
from cencli.core.yaml import dump_yaml
from cencli_logging import get_cli_logger, get_log_file_path

logger = get_cli_logger(__name__)

_SHORT_ONLY = {
    "default_output_type": OutputType.SHORT,
    "supported_output_types": (OutputType.SHORT,),
}


@click.group(
    name="config",
    cls=CencliGroup,
    invoke_without_command=True,
    default_output_type=OutputType.SHORT,
    short_help="Manage configuration and credentials",
)
@click.pass_context
def group(ctx: click.Context) -> None:
    """Manage cencli configuration settings and credentials."""
    if ctx.invoked_subcommand is None:
        show_group_help(ctx)


@group.command(
    name="show",
    default_output_type=OutputType.DATA,
    supported_output_types=(OutputType.DATA,),
)
@pass_context
@handle_exceptions
def show(ctx: Context) -> None:
    """Show the effective configuration."""
    ctx.print_data(ctx.config.as_dict())


@group.command(name="get", **_SHORT_ONLY)
@click.argument("key_path")
@pass_context
@handle_exceptions
def get_config(ctx: Context, key_path: str) -> None:
    """Get a configuration value.

    KEY_PATH uses dot notation (e.g. 'retry-strategy.max-attempts').
    """
    value = ctx.config_manager.get_value(key_path)
    if isinstance(value, (dict, list)):
        click.echo(dump_yaml(value).rstrip("\n"))
    elif isinstance(value, bool):
        click.echo("true" if value else "false")
    else:
        click.echo(value)


@group.command(name="set", **_SHORT_ONLY)
@click.argument("key_path")
@click.argument("value")
@pass_context
@handle_exceptions
def set_config(ctx: Context, key_path: str, value: str) -> None:
    """Set a configuration value in config.yaml.

    KEY_PATH uses dot notation; VALUE is validated before it is saved.
    """
    stored = ctx.config_manager.set_value(key_path, value)
    ctx.output.success(f"Set {key_path} = {stored}")


@group.command(name="init", **_SHORT_ONLY)
@click.option("--force", is_flag=True, help="Overwrite an existing config file with defaults")
@pass_context
@handle_exceptions
def init(ctx: Context, force: bool) -> None:
    """Create config.yaml with the default settings."""
    manager = ctx.config_manager
    if force:
        manager.reset()
        ctx.output.success(f"Reset configuration at {manager.config_file}")
    elif manager.ensure_config_file():
        ctx.output.success(f"Created configuration at {manager.config_file}")
    else:
        ctx.output.info(f"Configuration already exists at {manager.config_file}")
    DataPaths.templates_dir(manager.data_dir).mkdir(parents=True, exist_ok=True)


@group.command(name="paths", **_SHORT_ONLY)
@pass_context
@handle_exceptions
def paths(ctx: Context) -> None:
    """Show where configuration, credentials, templates and logs live."""
    data_dir = ctx.config_manager.data_dir
    rows = [
        ("data dir", data_dir),
        ("config", DataPaths.config_file(data_dir)),
        ("credentials", DataPaths.credentials_file(data_dir)),
        ("templates", DataPaths.templates_dir(data_dir)),
        ("log", get_log_file_path("cli")),
    ]
    width = max(len(label) for label, _ in rows)
    for label, path in rows:
        click.echo(f"{label.ljust(width)}  {path}")


@group.command(name="auth", **_SHORT_ONLY)
@click.option("--token", default=None, help="Personal access token (prompted when omitted)")
@click.option("--clear", is_flag=True, help="Remove the stored token")
@click.option("--show", is_flag=True, help="Show the active token, masked")
@pass_context
@handle_exceptions
def auth(ctx: Context, token: str | None, clear: bool, show: bool) -> None:
    """Store the personal access token used to call the Censys API."""
    store = ctx.credentials
    if sum((bool(token), clear, show)) > 1:
        msg = "use only one of --token, --clear and --show"
        raise UsageError(msg)
    if show:
        click.echo(mask_token(store.token))
        return
    if clear:
        store.clear_token()
        ctx.output.success("Removed stored personal access token")
        return
    if token is None:
        token = click.prompt("Personal access token", hide_input=True)
    token = token.strip()
    if not token:
        msg = "token must not be empty"
        raise UsageError(msg)
    store.set_token(token)
    logger.debug("Stored token %s", mask_token(token))
    ctx.output.success(f"{Icons.KEY} Saved personal access token {mask_token(token)}")


@group.command(name="org-id", **_SHORT_ONLY)
@click.argument("org_id", required=False, type=ORG_ID)
@click.option("--clear", is_flag=True, help="Remove the stored organization ID")
@pass_context
@handle_exceptions
def org_id(ctx: Context, org_id: str | None, clear: bool) -> None:
    """Show, store or clear the default organization ID."""
    store = ctx.credentials
    if clear and org_id:
        msg = "give either an organization ID or --clear"
        raise UsageError(msg)
    if clear:
        store.set_org_id(None)
        ctx.output.success("Removed stored organization ID")
        return
    if org_id:
        store.set_org_id(org_id)
        ctx.output.success(f"Saved default organization ID {org_id}")
        return
    current = store.org_id
    if current:
        click.echo(current)
    else:
        ctx.output.info("No organization ID stored")

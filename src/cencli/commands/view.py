"""View command: look up hosts, certificates or web properties."""

from __future__ import annotations

import sys
from datetime import datetime

import click

from cencli.commands.options import org_id_option
from cencli.core.command import CencliCommand
from cencli.core.config import TemplateEntity
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.errors import UsageError
from cencli.core.output.formats import OutputType
from cencli.core.param_types import TIMESTAMP
from cencli.formatting import short
from cencli.services.assets import AssetClassifier, AssetType, NoAssetsError, split_assets

_TEMPLATES = {
    AssetType.HOST: TemplateEntity.HOST,
    AssetType.CERTIFICATE: TemplateEntity.CERTIFICATE,
    AssetType.WEB_PROPERTY: TemplateEntity.WEB_PROPERTY,
}


def _read_lines(input_file: str) -> list[str]:
    stream = sys.stdin if input_file == "-" else None
    try:
        if stream is not None:
            text = stream.read()
        else:
            with open(input_file, encoding="utf-8") as f:
                text = f.read()
    except OSError as e:
        raise UsageError(f"failed to read {input_file}: {e}") from e
    lines = []
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            lines.extend(split_assets(line))
    return lines


@click.command(
    name="view",
    cls=CencliCommand,
    default_output_type=OutputType.DATA,
    supported_output_types=(OutputType.DATA, OutputType.TEMPLATE, OutputType.SHORT),
    supports_streaming=True,
    short_help="Retrieve information about hosts, certificates, and web properties",
)
@click.argument("assets", nargs=-1)
@org_id_option()
@click.option(
    "--input-file",
    "-i",
    default=None,
    help="File to read the assets from, '-' for stdin. Overrides the arguments.",
)
@click.option(
    "--at-time",
    "--at",
    "-a",
    "at_time",
    type=TIMESTAMP,
    default=None,
    help="View data as of this time (certificates not supported)",
)
@pass_context
@handle_exceptions
def command(
    ctx: Context,
    assets: tuple[str, ...],
    org_id: str | None,
    input_file: str | None,
    at_time: datetime | None,
) -> None:
    """Retrieve information about hosts, certificates, and web properties.

    Assets are IP addresses, SHA-256 certificate fingerprints or web
    properties (hostname[:port], port 443 by default). Defanged IPs and URLs
    are accepted. All assets of one invocation must be of the same type.

    \b
    Examples:
      censys view 8.8.8.8
      censys view 3daf2843a77b6f4e6af43cd9b6f6746053b8c928e056e8a724808db8905a94cf
      censys view platform.censys.io:80,google.com:80
      censys view --input-file hosts.txt
      censys view platform.censys.io:80 --at-time 2025-09-15T14:30:00Z
    """
    if input_file is not None:
        raw_assets = _read_lines(input_file)
    else:
        raw_assets = [part for arg in assets for part in split_assets(arg)]
    if not raw_assets:
        raise NoAssetsError

    classifier = AssetClassifier.classify(raw_assets)
    asset_type = classifier.asset_type()
    asset_ids = classifier.ids(asset_type)

    logger = ctx.logger("view")
    logger.debug(
        "view requested",
        extra={
            "fields": {
                "asset_type": asset_type.value,
                "count": len(asset_ids),
                "org_id_set": org_id is not None,
            },
        },
    )

    service = ctx.view_service
    with ctx.with_streaming_output(logger):
        result = ctx.with_progress(
            logger,
            "Fetching assets...",
            lambda: service.fetch(asset_type, asset_ids, org_id=org_id, at_time=at_time),
        )

    ctx.print_response_meta(result.meta)
    ctx.print_data(
        result.assets,
        short=lambda colored: short.assets(asset_type.value, result.assets, colored),
        template_entity=_TEMPLATES[asset_type],
    )
    ctx.print_partial_error(result.partial_error)

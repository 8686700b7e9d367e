"""Search command.

Runs a Censys Query Language search across global data, or within a
collection with ``--collection-id``.
"""

from __future__ import annotations

import click

from cencli.commands.options import org_id_option
from cencli.core.command import CencliCommand
from cencli.core.config import TemplateEntity
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.output.formats import OutputType
from cencli.core.param_types import COLLECTION_ID
from cencli.formatting import short
from cencli.services.search_service import SearchParams, SearchResult


def _split_fields(values: tuple[str, ...]) -> list[str]:
    fields: list[str] = []
    for value in values:
        fields.extend(part.strip() for part in value.split(",") if part.strip())
    return fields


@click.command(
    name="search",
    cls=CencliCommand,
    default_output_type=OutputType.DATA,
    supported_output_types=(OutputType.DATA, OutputType.TEMPLATE, OutputType.SHORT),
    supports_streaming=True,
    short_help="Execute a search query across Censys data",
)
@click.argument("query")
@org_id_option()
@click.option(
    "--collection-id",
    "-c",
    type=COLLECTION_ID,
    default=None,
    help="Collection to search within",
)
@click.option(
    "--fields",
    "-f",
    multiple=True,
    help="Fields to return in the response (comma separated, repeatable)",
)
@click.option(
    "--page-size",
    "-n",
    type=click.IntRange(min=1),
    default=None,
    help="Number of results per page [default: search.page-size]",
)
@click.option(
    "--max-pages",
    "-p",
    type=int,
    default=None,
    help="Maximum number of pages to fetch, -1 for all [default: search.max-pages]",
)
@pass_context
@handle_exceptions
def command(
    ctx: Context,
    query: str,
    org_id: str | None,
    collection_id: str | None,
    fields: tuple[str, ...],
    page_size: int | None,
    max_pages: int | None,
) -> None:
    """Run a search query across Censys data.

    Queries must be written in the Censys Query Language.

    \b
    Examples:
      censys search "host.ip: 1.1.1.1/16"
      censys search --fields host.ip,host.location "host.services.protocol=SSH"
      censys search --collection-id <id> "host.services.protocol=SSH"
      censys search --page-size 50 --max-pages 5 "cert.names=censys.com"
      censys search --max-pages -1 "host.services.port: 443"
    """
    config = ctx.config
    params = SearchParams(
        query=query,
        fields=_split_fields(fields),
        page_size=page_size if page_size is not None else config.search.page_size,
        max_pages=max_pages if max_pages is not None else config.search.max_pages,
        collection_id=collection_id,
        org_id=org_id,
    )
    logger = ctx.logger("search")
    logger.debug(
        "search requested",
        extra={
            "fields": {
                "query": query,
                "org_id_set": org_id is not None,
                "collection_id_set": collection_id is not None,
                "page_size": params.page_size,
                "max_pages": params.max_pages,
            },
        },
    )
    if params.max_pages == -1:
        ctx.output.warning(
            "Fetching all pages (--max-pages=-1). This may take a while and "
            "increase API usage.",
        )

    service = ctx.search_service
    result: SearchResult
    with ctx.with_streaming_output(logger):
        result = ctx.with_progress(
            logger,
            "Fetching search results...",
            lambda: service.search(params),
        )

    ctx.print_response_meta(result.meta)
    ctx.print_data(
        result.hits,
        short=lambda colored: short.search_hits(result.hits, colored),
        template_entity=TemplateEntity.SEARCH_RESULT,
    )
    ctx.print_partial_error(result.partial_error)

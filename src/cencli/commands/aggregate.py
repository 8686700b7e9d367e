"""Aggregate command.

Buckets the values of one field across the documents matching a query, the
command-line counterpart of the Platform Report Builder.
"""

from __future__ import annotations

import click

from cencli.commands.options import org_id_option
from cencli.core.command import CencliCommand
from cencli.core.context import Context, pass_context
from cencli.core.decorators import handle_exceptions
from cencli.core.output.formats import OutputType
from cencli.core.param_types import COLLECTION_ID
from cencli.formatting import short
from cencli.services.aggregate_service import (
    DEFAULT_NUM_BUCKETS,
    MAX_NUM_BUCKETS,
    MIN_NUM_BUCKETS,
    AggregateParams,
    CountByLevel,
)


@click.command(
    name="aggregate",
    cls=CencliCommand,
    default_output_type=OutputType.SHORT,
    supported_output_types=(OutputType.DATA, OutputType.SHORT),
    short_help="Aggregate results for a search query",
)
@click.argument("query")
@click.argument("field")
@org_id_option()
@click.option(
    "--collection-id",
    "-c",
    type=COLLECTION_ID,
    default=None,
    help="Collection to aggregate within",
)
@click.option(
    "--num-buckets",
    "-n",
    type=click.IntRange(MIN_NUM_BUCKETS, MAX_NUM_BUCKETS),
    default=DEFAULT_NUM_BUCKETS,
    show_default=True,
    help="Number of buckets to split results into",
)
@click.option(
    "--count-by-level",
    "-l",
    type=click.Choice([level.value for level in CountByLevel], case_sensitive=False),
    default=None,
    help="Document level counted in each bucket",
)
@click.option(
    "--filter-by-query",
    "-f",
    is_flag=True,
    default=False,
    help="Only count values that match the query",
)
@pass_context
@handle_exceptions
def command(
    ctx: Context,
    query: str,
    field: str,
    org_id: str | None,
    collection_id: str | None,
    num_buckets: int,
    count_by_level: str | None,
    filter_by_query: bool,
) -> None:
    """Aggregate the values of FIELD over the results of QUERY.

    \b
    Examples:
      censys aggregate "host.services.protocol=SSH" host.services.port
      censys aggregate -n 5 -l service "host.services.port=22" host.services.protocol
      censys aggregate -c <collection-id> "services.service_name:HTTP" services.port
    """
    params = AggregateParams(
        query=query,
        field=field,
        num_buckets=num_buckets,
        count_by_level=CountByLevel(count_by_level.lower()) if count_by_level else None,
        filter_by_query=filter_by_query,
        collection_id=collection_id,
        org_id=org_id,
    )
    logger = ctx.logger("aggregate")
    logger.debug(
        "aggregate requested",
        extra={
            "fields": {
                "query": query,
                "field": field,
                "num_buckets": num_buckets,
                "org_id_set": org_id is not None,
                "collection_id_set": collection_id is not None,
                "filter_by_query": filter_by_query,
            },
        },
    )

    service = ctx.aggregate_service
    result = ctx.with_progress(
        logger,
        "Fetching aggregation results...",
        lambda: service.aggregate(params),
    )

    buckets = [bucket.as_dict() for bucket in result.buckets]
    ctx.print_response_meta(result.meta)
    ctx.print_data(
        buckets,
        short=lambda colored: short.aggregate_buckets(
            buckets,
            query,
            field,
            count_by_level=params.count_by_level.value if params.count_by_level else None,
            filter_by_query=filter_by_query,
            colored=colored,
        ),
    )

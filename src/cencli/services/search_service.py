"""Paginated search over global data or a collection."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from cencli.core.errors import CencliError, PartialError, UsageError, to_partial_error
from cencli.core.timeouts import Deadline
from cencli.services.api import CensysClient, ResponseMeta
from cencli.services.progress import Stage, report_error, report_message
from cencli.services.streaming import emit_or_collect
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)

# Search hit members and the asset type each one carries
HIT_KINDS = {
    "host_v1": "host",
    "certificate_v1": "certificate",
    "webproperty_v1": "webproperty",
}


class InvalidPaginationParamsError(UsageError):
    title = "Invalid Pagination Params"


@dataclass
class SearchParams:
    query: str
    fields: list[str] = field(default_factory=list)
    page_size: int = 100
    # -1 fetches every page
    max_pages: int = 1
    collection_id: str | None = None
    org_id: str | None = None


@dataclass
class SearchResult:
    hits: list[dict[str, Any]] = field(default_factory=list)
    total_hits: int = 0
    meta: ResponseMeta | None = None
    partial_error: PartialError | None = None


def parse_hit(hit: Any) -> dict[str, Any] | None:
    """Reduce an API hit to ``{asset_type: resource}``.

    Host hits keep their ``matched_services`` next to the resource.
    """
    if not isinstance(hit, dict):
        return None
    for member, asset_type in HIT_KINDS.items():
        body = hit.get(member)
        if not isinstance(body, dict):
            continue
        resource = dict(body.get("resource") or {})
        if asset_type == "host" and body.get("matched_services"):
            resource["matched_services"] = body["matched_services"]
        return {asset_type: resource}
    return None


class SearchService:
    """Runs searches page by page.

    Parameters
    ----------
    client : CensysClient
        API client
    deadline : Deadline | None
        Checked before every page
    """

    def __init__(self, client: CensysClient, deadline: Deadline | None = None) -> None:
        self.client = client
        self.deadline = deadline or Deadline.none()

    def search(self, params: SearchParams) -> SearchResult:
        """Fetch up to ``params.max_pages`` pages of hits.

        An error on the first page is raised. Errors on later pages, including
        the deadline passing, end pagination and are returned as the result's
        ``partial_error`` alongside the hits collected so far.

        Raises
        ------
        InvalidPaginationParamsError
            If the page size or page limit is out of range
        CencliError
            If the first page cannot be fetched
        """
        if params.page_size < 1:
            msg = "page size must be greater than 0"
            raise InvalidPaginationParamsError(msg)
        if params.max_pages == 0 or params.max_pages < -1:
            msg = "max pages must be greater than 0, or -1 for all pages"
            raise InvalidPaginationParamsError(msg)

        unlimited = params.max_pages == -1
        result = SearchResult()
        pages = 0
        collected = 0
        page_token: str | None = None
        start = time.monotonic()
        first_error: CencliError | None = None

        while unlimited or pages < params.max_pages:
            self._report_page(pages, collected, params.max_pages)
            try:
                self.deadline.check()
                response = self.client.search(
                    params.query,
                    fields=params.fields,
                    page_size=params.page_size,
                    page_token=page_token,
                    collection_id=params.collection_id,
                    org_id=params.org_id,
                    deadline=self.deadline,
                )
            except CencliError as e:
                if pages == 0:
                    raise
                logger.debug("Search stopped after %d page(s): %s", pages, e.message)
                report_error(Stage.FETCH, e)
                first_error = e
                break

            result.meta = response.meta
            pages += 1
            data = response.data if isinstance(response.data, dict) else {}
            page_hits = [parsed for parsed in map(parse_hit, data.get("hits") or []) if parsed]
            for hit in page_hits:
                emit_or_collect(hit, result.hits)
            collected += len(page_hits)
            result.total_hits = int(data.get("total_hits") or 0)

            page_token = data.get("next_page_token") or None
            if page_token is None or not page_hits:
                break

        if result.meta is not None:
            result.meta = result.meta.with_totals(time.monotonic() - start, pages)
        result.partial_error = to_partial_error(first_error)
        return result

    @staticmethod
    def _report_page(page: int, collected: int, max_pages: int) -> None:
        if page == 0:
            return
        if max_pages > 0:
            message = (
                f"Fetching search results (page {page + 1}/{max_pages}, "
                f"{collected} hits collected)..."
            )
        else:
            message = f"Fetching search results (page {page + 1}, {collected} hits collected)..."
        report_message(Stage.FETCH, message)

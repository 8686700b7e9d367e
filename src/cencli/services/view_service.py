"""Batched lookup of hosts, certificates and web properties."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from cencli.core.constants import (
    MAX_CERTIFICATES_PER_REQUEST,
    MAX_HOSTS_PER_REQUEST,
    MAX_WEB_PROPERTIES_PER_REQUEST,
)
from cencli.core.errors import CencliError, PartialError, UsageError, to_partial_error
from cencli.core.timeouts import Deadline
from cencli.services.api import ApiResult, CensysClient, ResponseMeta
from cencli.services.assets import AssetType
from cencli.services.progress import Stage, report_error, report_message
from cencli.services.streaming import emit_or_collect
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)

BATCH_LIMITS = {
    AssetType.HOST: MAX_HOSTS_PER_REQUEST,
    AssetType.CERTIFICATE: MAX_CERTIFICATES_PER_REQUEST,
    AssetType.WEB_PROPERTY: MAX_WEB_PROPERTIES_PER_REQUEST,
}

# Singular and plural nouns used in progress messages
_NOUNS = {
    AssetType.HOST: ("host", "hosts"),
    AssetType.CERTIFICATE: ("certificate", "certificates"),
    AssetType.WEB_PROPERTY: ("web property", "web properties"),
}


class AtTimeNotSupportedError(UsageError):
    title = "At-Time Not Supported"

    def __init__(self, asset_type: AssetType) -> None:
        super().__init__(f"at-time is not supported for {asset_type.value} assets")


@dataclass
class ViewResult:
    asset_type: AssetType
    assets: list[Any] = field(default_factory=list)
    meta: ResponseMeta | None = None
    partial_error: PartialError | None = None


def split_batches(items: Sequence[str], size: int) -> list[list[str]]:
    """Split ``items`` into consecutive batches of at most ``size``."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _resource(item: Any) -> Any:
    if isinstance(item, dict) and isinstance(item.get("resource"), dict):
        return item["resource"]
    return item


def fetch_message(
    asset_type: AssetType,
    total: int,
    batch_number: int,
    batch_count: int,
    batch_size: int,
    at_time: datetime | None = None,
) -> str | None:
    """Progress message for one batch, ``None`` when nothing is worth saying."""
    singular, plural = _NOUNS[asset_type]
    if batch_count > 1:
        message = f"Fetching {plural} batch {batch_number}/{batch_count} ({batch_size} {plural})"
    elif asset_type is AssetType.HOST:
        message = f"Fetching {total} host(s)"
    elif total > 1:
        message = f"Fetching {total} {plural}"
    else:
        return None
    if at_time is not None:
        message = f"{message} at {at_time.isoformat()}"
    return message + "..."


class ViewService:
    """Fetches assets of one type in API-sized batches.

    Parameters
    ----------
    client : CensysClient
        API client
    deadline : Deadline | None
        Checked before every batch
    """

    def __init__(self, client: CensysClient, deadline: Deadline | None = None) -> None:
        self.client = client
        self.deadline = deadline or Deadline.none()

    def _fetcher(
        self,
        asset_type: AssetType,
        org_id: str | None,
        at_time: datetime | None,
    ) -> Callable[[list[str]], ApiResult[Any]]:
        if asset_type is AssetType.HOST:
            return lambda batch: self.client.get_hosts(
                batch,
                at_time=at_time,
                org_id=org_id,
                deadline=self.deadline,
            )
        if asset_type is AssetType.CERTIFICATE:
            return lambda batch: self.client.get_certificates(
                batch,
                org_id=org_id,
                deadline=self.deadline,
            )
        return lambda batch: self.client.get_web_properties(
            batch,
            at_time=at_time,
            org_id=org_id,
            deadline=self.deadline,
        )

    def fetch(
        self,
        asset_type: AssetType,
        asset_ids: Sequence[str],
        org_id: str | None = None,
        at_time: datetime | None = None,
    ) -> ViewResult:
        """Fetch every asset in ``asset_ids``.

        A failure on the first batch is raised; later failures stop fetching
        and are returned as ``partial_error`` with the assets already fetched.

        Raises
        ------
        AtTimeNotSupportedError
            If ``at_time`` is given for certificates
        CencliError
            If the first batch fails
        """
        if asset_type is AssetType.CERTIFICATE and at_time is not None:
            raise AtTimeNotSupportedError(asset_type)

        fetch_batch = self._fetcher(asset_type, org_id, at_time)
        batches = split_batches(asset_ids, BATCH_LIMITS[asset_type])
        result = ViewResult(asset_type)
        processed = 0
        start = time.monotonic()
        first_error: CencliError | None = None

        for number, batch in enumerate(batches, start=1):
            message = fetch_message(
                asset_type,
                len(asset_ids),
                number,
                len(batches),
                len(batch),
                at_time,
            )
            if message:
                report_message(Stage.FETCH, message)
            try:
                self.deadline.check()
                response = fetch_batch(batch)
            except CencliError as e:
                if processed == 0:
                    raise
                logger.debug("View stopped after %d batch(es): %s", processed, e.message)
                report_error(Stage.FETCH, e)
                first_error = e
                break

            result.meta = response.meta
            for item in response.data or []:
                emit_or_collect(_resource(item), result.assets)
            processed += 1

        if result.meta is not None:
            result.meta = result.meta.with_totals(time.monotonic() - start, processed)
        result.partial_error = to_partial_error(first_error)
        return result

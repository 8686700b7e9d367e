"""Term aggregation over global data or a collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cencli.core.timeouts import Deadline
from cencli.services.api import CensysClient, ResponseMeta

DEFAULT_NUM_BUCKETS = 25
MIN_NUM_BUCKETS = 1
MAX_NUM_BUCKETS = 10000


class CountByLevel(str, Enum):
    """Document level counted per bucket."""

    HOST = "host"
    SERVICE = "service"
    PROTOCOL = "protocol"


@dataclass
class AggregateParams:
    query: str
    field: str
    num_buckets: int = DEFAULT_NUM_BUCKETS
    count_by_level: CountByLevel | None = None
    filter_by_query: bool = False
    collection_id: str | None = None
    org_id: str | None = None


@dataclass
class Bucket:
    key: str
    count: int

    def as_dict(self) -> dict[str, Any]:
        return {"key": self.key, "count": self.count}


@dataclass
class AggregateResult:
    buckets: list[Bucket] = field(default_factory=list)
    meta: ResponseMeta | None = None


def parse_buckets(data: Any) -> list[Bucket]:
    """Buckets from an aggregate response, skipping malformed entries."""
    raw = data.get("buckets") if isinstance(data, dict) else None
    buckets = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        buckets.append(Bucket(str(entry.get("key", "")), int(entry.get("count") or 0)))
    return buckets


class AggregateService:
    def __init__(self, client: CensysClient, deadline: Deadline | None = None) -> None:
        self.client = client
        self.deadline = deadline or Deadline.none()

    def aggregate(self, params: AggregateParams) -> AggregateResult:
        """Run one aggregation; there is no pagination."""
        response = self.client.aggregate(
            params.query,
            params.field,
            num_buckets=params.num_buckets,
            count_by_level=params.count_by_level.value if params.count_by_level else None,
            filter_by_query=params.filter_by_query,
            collection_id=params.collection_id,
            org_id=params.org_id,
            deadline=self.deadline,
        )
        return AggregateResult(parse_buckets(response.data), response.meta)

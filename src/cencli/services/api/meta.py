"""Response metadata shown after API-backed commands."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from http import HTTPStatus
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def format_latency(seconds: float) -> str:
    """Latency as ``850ms`` or ``1.42s``."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"


@dataclass
class ResponseMeta:
    """What the last request of an operation looked like.

    ``latency`` covers the whole operation once a service has finished, so
    for paginated commands it spans every page.
    """

    method: str
    url: str
    status: int
    latency: float = 0.0
    headers: dict[str, str] = field(default_factory=dict)
    attempts: int = 1
    page_count: int = 0

    @property
    def retry_count(self) -> int:
        return max(0, self.attempts - 1)

    def with_totals(self, latency: float, page_count: int) -> ResponseMeta:
        """Copy with the operation-wide latency and page count."""
        return replace(self, latency=latency, page_count=page_count)

    def status_line(self) -> str:
        """``200 (OK) - 1.2s - pages: 3 - retries: 1``"""
        try:
            phrase = HTTPStatus(self.status).phrase
        except ValueError:
            phrase = "unknown"
        line = f"{self.status} ({phrase}) - {format_latency(self.latency)}"
        if self.page_count > 0:
            line += f" - pages: {self.page_count}"
        if self.retry_count > 0:
            line += f" - retries: {self.retry_count}"
        return line


@dataclass
class ApiResult(Generic[T]):
    """Decoded ``result`` payload plus the metadata of its response."""

    data: T
    meta: ResponseMeta


def unwrap_envelope(payload: Any) -> Any:
    """Return the ``result`` member of an API envelope, or the payload."""
    if isinstance(payload, dict) and "result" in payload:
        return payload["result"]
    return payload

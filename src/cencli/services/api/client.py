"""Censys Platform API client.

A thin synchronous wrapper over :class:`httpx.Client`: bearer authentication,
the optional ``organization_id`` query parameter, retries on 429 and 5xx
responses, and timeouts bounded by the operation :class:`Deadline`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
)
from tenacity.wait import wait_base

from cencli import __version__
from cencli.core.config import RetryStrategy
from cencli.core.constants import DEFAULT_API_URL
from cencli.core.errors import DeadlineExceededError
from cencli.core.timeouts import Deadline
from cencli.services.api.errors import (
    ClientError,
    ClientNotConfiguredError,
    UnauthorizedError,
)
from cencli.services.api.meta import ApiResult, ResponseMeta, unwrap_envelope
from cencli_logging import get_cli_logger

logger = get_cli_logger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
USER_AGENT = f"cencli/{__version__}"

# Response headers worth keeping for --debug output
_KEPT_HEADERS = ("content-type", "retry-after", "x-request-id", "x-ratelimit-remaining")


def _capped_by(wait: wait_base, deadline: Deadline) -> Callable[[RetryCallState], float]:
    """Shorten ``wait`` so a retry never sleeps past ``deadline``."""

    def capped(retry_state: RetryCallState) -> float:
        delay = wait(retry_state)
        remaining = deadline.remaining()
        return delay if remaining is None else min(delay, remaining)

    return capped


class CensysClient:
    """Synchronous client for the endpoints the CLI uses.

    Parameters
    ----------
    token : str | None
        Personal access token
    org_id : str | None
        Default organization id, sent as ``organization_id``
    base_url : str
        API root
    retry : RetryStrategy | None
        Retry policy for 429 and 5xx responses
    http_timeout : float | None
        Per-request timeout in seconds; ``None`` or ``0`` means unbounded
    transport : httpx.BaseTransport | None
        Custom transport, e.g. :class:`httpx.MockTransport` in tests
    sleep : callable
        Sleep function used between retries

    Raises
    ------
    ClientNotConfiguredError
        If no token is given
    """

    def __init__(
        self,
        token: str | None,
        org_id: str | None = None,
        base_url: str = DEFAULT_API_URL,
        retry: RetryStrategy | None = None,
        http_timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not token:
            raise ClientNotConfiguredError
        self.org_id = org_id
        self.retry = retry or RetryStrategy()
        self.http_timeout = http_timeout or None
        self._sleep = sleep
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> CensysClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        query: dict[str, Any] | None = None,
        org_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        """Send a request, retrying transient failures.

        Returns
        -------
        ApiResult
            The unwrapped ``result`` payload and response metadata

        Raises
        ------
        UnauthorizedError
            On 401 or 403
        ClientError
            On any other error status or transport failure
        DeadlineExceededError
            If the deadline passes before a response arrives
        """
        deadline = deadline or Deadline.none()
        params = dict(query or {})
        effective_org = org_id or self.org_id
        if effective_org:
            params["organization_id"] = str(effective_org)

        attempts = 0

        def send() -> httpx.Response:
            nonlocal attempts
            attempts += 1
            deadline.check()
            logger.debug("%s %s (attempt %d)", method, path, attempts)
            try:
                return self._http.request(
                    method,
                    path,
                    params=params,
                    json=json,
                    timeout=deadline.request_timeout(self.http_timeout),
                )
            except httpx.TimeoutException as e:
                if deadline.expired():
                    raise DeadlineExceededError from e
                raise

        retrying = Retrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=_capped_by(self.retry.wait(), deadline),
            retry=(
                retry_if_exception_type(httpx.TransportError)
                | retry_if_result(lambda r: r.status_code in RETRYABLE_STATUS)
            ),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            # Hand back the last response (or re-raise the last transport
            # error) once attempts run out.
            retry_error_callback=lambda state: state.outcome.result(),
        )

        start = time.monotonic()
        try:
            response = retrying(send)
        except httpx.TimeoutException as e:
            raise ClientError(f"request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            raise ClientError(f"request failed: {e}") from e

        latency = time.monotonic() - start
        meta = ResponseMeta(
            method=method,
            url=str(response.request.url),
            status=response.status_code,
            latency=latency,
            headers={
                name: response.headers[name]
                for name in _KEPT_HEADERS
                if name in response.headers
            },
            attempts=attempts,
        )

        if response.status_code in (401, 403):
            raise UnauthorizedError.from_response(response.status_code, response.text)
        if response.status_code >= 400:
            raise ClientError.from_response(response.status_code, response.text)

        try:
            payload = response.json() if response.content else None
        except ValueError as e:
            msg = f"invalid JSON in response from {method} {path}"
            raise ClientError(msg, status_code=response.status_code) from e
        return ApiResult(unwrap_envelope(payload), meta)

    # Global data

    def search(
        self,
        query: str,
        *,
        fields: Sequence[str] = (),
        page_size: int | None = None,
        page_token: str | None = None,
        collection_id: str | None = None,
        org_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        """Run one page of a search, globally or within a collection."""
        body: dict[str, Any] = {"query": query}
        if fields:
            body["fields"] = list(fields)
        if page_size is not None:
            body["page_size"] = page_size
        if page_token:
            body["page_token"] = page_token
        if collection_id:
            path = f"/v3/collections/{collection_id}/search/query"
        else:
            path = "/v3/global/search/query"
        return self.request("POST", path, json=body, org_id=org_id, deadline=deadline)

    def get_hosts(
        self,
        host_ids: Sequence[str],
        *,
        at_time: datetime | None = None,
        org_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        body: dict[str, Any] = {"host_ids": list(host_ids)}
        if at_time is not None:
            body["at_time"] = at_time.isoformat()
        return self.request(
            "POST",
            "/v3/global/asset/host",
            json=body,
            org_id=org_id,
            deadline=deadline,
        )

    def get_certificates(
        self,
        certificate_ids: Sequence[str],
        *,
        org_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        return self.request(
            "POST",
            "/v3/global/asset/certificate",
            json={"certificate_ids": list(certificate_ids)},
            org_id=org_id,
            deadline=deadline,
        )

    def get_web_properties(
        self,
        webproperty_ids: Sequence[str],
        *,
        at_time: datetime | None = None,
        org_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        body: dict[str, Any] = {"webproperty_ids": list(webproperty_ids)}
        if at_time is not None:
            body["at_time"] = at_time.isoformat()
        return self.request(
            "POST",
            "/v3/global/asset/webproperty",
            json=body,
            org_id=org_id,
            deadline=deadline,
        )

    def aggregate(
        self,
        query: str,
        field: str,
        *,
        num_buckets: int,
        count_by_level: str | None = None,
        filter_by_query: bool | None = None,
        collection_id: str | None = None,
        org_id: str | None = None,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        """Bucket the values of ``field`` over the documents matching ``query``."""
        body: dict[str, Any] = {
            "query": query,
            "field": field,
            "number_of_buckets": num_buckets,
        }
        if count_by_level:
            body["count_by_level"] = count_by_level
        if filter_by_query is not None:
            body["filter_by_query"] = filter_by_query
        if collection_id:
            path = f"/v3/collections/{collection_id}/search/aggregate"
        else:
            path = "/v3/global/search/aggregate"
        return self.request("POST", path, json=body, org_id=org_id, deadline=deadline)

    # Accounts

    def get_user_credits(self, deadline: Deadline | None = None) -> ApiResult[Any]:
        return self.request("GET", "/v3/accounts/users/credits", deadline=deadline)

    def get_organization_credits(
        self,
        org_id: str,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        return self.request(
            "GET",
            f"/v3/accounts/organizations/{org_id}/credits",
            deadline=deadline,
        )

    def get_organization_details(
        self,
        org_id: str,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        return self.request(
            "GET",
            f"/v3/accounts/organizations/{org_id}",
            deadline=deadline,
        )

    def get_organization_members(
        self,
        org_id: str,
        *,
        page_size: int | None = None,
        page_token: str | None = None,
        deadline: Deadline | None = None,
    ) -> ApiResult[Any]:
        """Fetch one page of an organization's members."""
        query: dict[str, Any] = {}
        if page_size is not None:
            query["page_size"] = page_size
        if page_token:
            query["page_token"] = page_token
        return self.request(
            "GET",
            f"/v3/accounts/organizations/{org_id}/members",
            query=query,
            deadline=deadline,
        )

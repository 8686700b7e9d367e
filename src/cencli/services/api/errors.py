"""Errors raised by the API client."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

from cencli.core.errors import CencliError

MAX_BODY_PREVIEW = 200


def _status_text(status_code: int | None) -> str:
    if status_code is None:
        return "unknown"
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "unknown"


class ClientError(CencliError):
    """The API answered with an error status.

    Parameters
    ----------
    message : str
        Error detail
    status_code : int | None
        HTTP status of the failed response, ``None`` for transport failures
    body : Any
        Decoded error body when the API sent one
    """

    title = "Error Returned from Censys API"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def status(self) -> str:
        """Reason phrase for :attr:`status_code`."""
        return _status_text(self.status_code)

    @classmethod
    def from_response(cls, status_code: int, text: str) -> ClientError:
        """Build an error from a failed response body.

        JSON bodies are pretty-printed; anything else is truncated.
        """
        body: Any = None
        try:
            body = json.loads(text) if text else None
        except ValueError:
            body = None

        if isinstance(body, (dict, list)):
            detail = json.dumps(body, indent=2, sort_keys=True)
        else:
            detail = text.strip()
            if len(detail) > MAX_BODY_PREVIEW:
                detail = detail[:MAX_BODY_PREVIEW] + "..."

        message = f"{_status_text(status_code)} (status code: {status_code})"
        if detail:
            message = f"{message}\n{detail}"
        return cls(message, status_code=status_code, body=body)


class UnauthorizedError(ClientError):
    """The token was rejected (401) or lacks access (403)."""

    title = "Unauthorized to Access Censys API"


class ClientNotConfiguredError(CencliError):
    """No personal access token is configured."""

    title = "Not Authenticated"

    def __init__(self) -> None:
        super().__init__(
            "no personal access token configured. Run 'censys config auth' "
            "or set CENCLI_PAT",
        )

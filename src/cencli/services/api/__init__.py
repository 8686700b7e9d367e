"""HTTP client for the Censys Platform API."""

from cencli.services.api.client import CensysClient
from cencli.services.api.errors import (
    ClientError,
    ClientNotConfiguredError,
    UnauthorizedError,
)
from cencli.services.api.meta import ApiResult, ResponseMeta

__all__ = [
    "ApiResult",
    "CensysClient",
    "ClientError",
    "ClientNotConfiguredError",
    "ResponseMeta",
    "UnauthorizedError",
]

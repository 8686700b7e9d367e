"""Credit balances for the user or an organization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cencli.core.timeouts import Deadline
from cencli.services.api import CensysClient, ResponseMeta


@dataclass
class CreditsResult:
    data: dict[str, Any]
    meta: ResponseMeta


def _mapping(data: Any) -> dict[str, Any]:
    return data if isinstance(data, dict) else {}


class CreditsService:
    def __init__(self, client: CensysClient, deadline: Deadline | None = None) -> None:
        self.client = client
        self.deadline = deadline or Deadline.none()

    def user_credits(self) -> CreditsResult:
        """Free credit balance of the authenticated user."""
        response = self.client.get_user_credits(deadline=self.deadline)
        return CreditsResult(_mapping(response.data), response.meta)

    def organization_credits(self, org_id: str) -> CreditsResult:
        """Credit balance and expirations of ``org_id``."""
        response = self.client.get_organization_credits(org_id, deadline=self.deadline)
        return CreditsResult(_mapping(response.data), response.meta)

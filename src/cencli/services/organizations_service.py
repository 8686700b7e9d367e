"""Organization details and members."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from cencli.core.timeouts import Deadline
from cencli.services.api import CensysClient, ResponseMeta
from cencli.services.progress import Stage, report_message

# Member attributes kept from the API response, in display order
MEMBER_FIELDS = (
    "uid",
    "email",
    "first_name",
    "last_name",
    "roles",
    "created_at",
    "first_login_time",
    "latest_login_time",
)


@dataclass
class OrganizationDetailsResult:
    data: dict[str, Any]
    meta: ResponseMeta


@dataclass
class OrganizationMembersResult:
    members: list[dict[str, Any]] = field(default_factory=list)
    meta: ResponseMeta | None = None

    @property
    def data(self) -> dict[str, Any]:
        return {"members": self.members}


def parse_member(member: Any) -> dict[str, Any] | None:
    """Keep the known member attributes; empty values are dropped."""
    if not isinstance(member, dict):
        return None
    parsed = {name: member[name] for name in MEMBER_FIELDS if member.get(name) not in (None, "", [])}
    parsed.setdefault("roles", [])
    return parsed


class OrganizationsService:
    def __init__(self, client: CensysClient, deadline: Deadline | None = None) -> None:
        self.client = client
        self.deadline = deadline or Deadline.none()

    def details(self, org_id: str) -> OrganizationDetailsResult:
        response = self.client.get_organization_details(org_id, deadline=self.deadline)
        data = response.data if isinstance(response.data, dict) else {}
        return OrganizationDetailsResult(data, response.meta)

    def members(self, org_id: str, page_size: int | None = None) -> OrganizationMembersResult:
        """List every member of ``org_id``, following page tokens.

        Unlike search, an error on any page is raised; members are never
        returned partially.
        """
        result = OrganizationMembersResult()
        page_token: str | None = None
        pages = 0
        start = time.monotonic()
        while True:
            if pages:
                report_message(
                    Stage.FETCH,
                    f"Fetching organization members (page {pages + 1}, "
                    f"{len(result.members)} collected)...",
                )
            self.deadline.check()
            response = self.client.get_organization_members(
                org_id,
                page_size=page_size,
                page_token=page_token,
                deadline=self.deadline,
            )
            pages += 1
            result.meta = response.meta
            data = response.data if isinstance(response.data, dict) else {}
            result.members.extend(
                parsed for parsed in map(parse_member, data.get("members") or []) if parsed
            )
            pagination = data.get("pagination") if isinstance(data.get("pagination"), dict) else {}
            page_token = pagination.get("next_page_token") or None
            if page_token is None:
                break

        if result.meta is not None:
            result.meta = result.meta.with_totals(time.monotonic() - start, pages)
        return result

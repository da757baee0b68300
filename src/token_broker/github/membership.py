"""
token_broker.github.membership

Organization and team membership checks.

Responsibilities:
- Map GitHub's membership responses onto a closed set of decisions.
- Keep "the broker may not ask" (403) distinct from "the user is not a member".
"""

from __future__ import annotations

import enum

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from token_broker.errors import DecodingError, ForbiddenError, UpstreamError, ValidationError
from token_broker.github.api import DEFAULT_API_VERSION, github_headers, segment, send
from token_broker.github.exchange import InstallationCredential
from token_broker.observability.logging import get_logger

log = get_logger(__name__)


class MembershipDecision(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    NOT_FOUND = "not_found"

    @property
    def authorizes(self) -> bool:
        return self is MembershipDecision.ACTIVE


class TeamMembershipPayload(BaseModel):
    state: str


def _require(**fields: str | None) -> None:
    for name, value in fields.items():
        if not value:
            raise ValidationError(f"{name} is required for membership verification")


class MembershipVerifier:
    def __init__(self, *, http: httpx.AsyncClient, api_version: str = DEFAULT_API_VERSION) -> None:
        self._http = http
        self._api_version = api_version

    def _headers(self, credential: InstallationCredential) -> dict[str, str]:
        return github_headers(credential.token, api_version=self._api_version)

    async def verify_org(
        self,
        credential: InstallationCredential,
        *,
        username: str,
        organization: str,
    ) -> MembershipDecision:
        _require(username=username, organization=organization)

        r = await send(
            self._http,
            "GET",
            f"/orgs/{segment(organization)}/members/{segment(username)}",
            headers=self._headers(credential),
        )
        if r.status_code == httpx.codes.NO_CONTENT:
            decision = MembershipDecision.ACTIVE
        elif r.status_code == httpx.codes.NOT_FOUND:
            decision = MembershipDecision.NOT_FOUND
        elif r.status_code == httpx.codes.FORBIDDEN:
            raise ForbiddenError(
                f"installation token is not allowed to read members of organization {organization}"
            )
        else:
            raise UpstreamError(r.status_code, r.text)

        log.info("org_membership", username=username, organization=organization, decision=decision.value)
        return decision

    async def verify_team(
        self,
        credential: InstallationCredential,
        *,
        username: str,
        organization: str,
        team: str,
    ) -> MembershipDecision:
        _require(username=username, organization=organization, team=team)

        r = await send(
            self._http,
            "GET",
            f"/orgs/{segment(organization)}/teams/{segment(team)}/memberships/{segment(username)}",
            headers=self._headers(credential),
        )
        if r.status_code == httpx.codes.OK:
            try:
                payload = TeamMembershipPayload.model_validate_json(r.content)
            except PydanticValidationError as e:
                raise DecodingError("decoding team membership response: missing state") from e
            # Anything short of "active" (e.g. a pending invitation) does not count.
            if payload.state == "active":
                decision = MembershipDecision.ACTIVE
            else:
                decision = MembershipDecision.PENDING
        elif r.status_code == httpx.codes.NOT_FOUND:
            decision = MembershipDecision.NOT_FOUND
        elif r.status_code == httpx.codes.FORBIDDEN:
            raise ForbiddenError(
                f"installation token is not allowed to read team {organization}/{team}"
            )
        else:
            raise UpstreamError(r.status_code, r.text)

        log.info(
            "team_membership",
            username=username,
            organization=organization,
            team=team,
            decision=decision.value,
        )
        return decision


# --- Module Notes -----------------------------------------------------------
# Both checks authenticate with the installation credential just issued, so
# they can only run after a successful exchange.

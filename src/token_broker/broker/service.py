"""
token_broker.broker.service

Credential broker: issue an installation credential, gated by membership.

Responsibilities:
- Reject bad requests before any upstream call.
- Exchange first, then verify membership with the fresh credential.
- Release the credential only once every required check has passed.
"""

from __future__ import annotations

import httpx

from token_broker.broker.models import BrokerRequest, MembershipQuery
from token_broker.broker.policy import GateDefaults, NoGate, OrgGate, TeamGate, select_gate
from token_broker.errors import (
    AuthorizationError,
    DecodingError,
    NetworkError,
    UpstreamError,
    ValidationError,
)
from token_broker.github.api import DEFAULT_API_VERSION
from token_broker.github.exchange import InstallationCredential, TokenExchanger
from token_broker.github.identity import AppIdentity, IdentitySigner
from token_broker.github.installations import InstallationLookup
from token_broker.github.membership import MembershipVerifier
from token_broker.observability.logging import get_logger

log = get_logger(__name__)


class CredentialBroker:
    """
    Stateless per request: every `issue()` builds its own signer from the
    held key material, so concurrent requests share nothing mutable.
    """

    def __init__(
        self,
        *,
        private_key: bytes | None,
        http: httpx.AsyncClient,
        defaults: GateDefaults | None = None,
        api_version: str = DEFAULT_API_VERSION,
    ) -> None:
        self._private_key = private_key
        self._http = http
        self._defaults = defaults or GateDefaults()
        self._api_version = api_version

    async def issue(self, request: BrokerRequest) -> InstallationCredential:
        gate = select_gate(request, self._defaults)
        username = request.username
        if not isinstance(gate, NoGate) and not username:
            raise ValidationError(
                "username query parameter is required when membership verification is enabled"
            )

        signer = IdentitySigner(AppIdentity(app_id=request.app_id, private_key=self._private_key))

        query: MembershipQuery | None = None
        if username and isinstance(gate, OrgGate):
            query = MembershipQuery(username=username, organization=gate.organization)
        elif username and isinstance(gate, TeamGate):
            organization = gate.organization or await self._detect_organization(signer, request)
            query = MembershipQuery(username=username, organization=organization, team=gate.team)

        log.info(
            "gate_selected",
            app_id=request.app_id,
            installation_id=request.installation_id,
            gate=type(gate).__name__,
        )

        exchanger = TokenExchanger(signer=signer, http=self._http, api_version=self._api_version)
        credential = await exchanger.exchange(request.installation_id)

        if query is not None:
            await self._enforce(query, credential)
        return credential

    async def _detect_organization(self, signer: IdentitySigner, request: BrokerRequest) -> str:
        lookup = InstallationLookup(signer=signer, http=self._http, api_version=self._api_version)
        try:
            organization = await lookup.owning_organization(request.installation_id)
        except (UpstreamError, NetworkError, DecodingError) as e:
            log.warning(
                "organization_detection_failed",
                installation_id=request.installation_id,
                error=str(e),
            )
            organization = None

        if not organization:
            raise ValidationError(
                "org query parameter is required for team verification: "
                "organization could not be detected from the installation"
            )
        log.info(
            "organization_detected",
            installation_id=request.installation_id,
            organization=organization,
        )
        return organization

    async def _enforce(self, query: MembershipQuery, credential: InstallationCredential) -> None:
        verifier = MembershipVerifier(http=self._http, api_version=self._api_version)

        if query.team is None:
            decision = await verifier.verify_org(
                credential, username=query.username, organization=query.organization
            )
            if not decision.authorizes:
                raise AuthorizationError(
                    f"user {query.username} is not a member of organization {query.organization}"
                )
            return

        decision = await verifier.verify_team(
            credential,
            username=query.username,
            organization=query.organization,
            team=query.team,
        )
        if not decision.authorizes:
            raise AuthorizationError(
                f"user {query.username} is not an active member of team "
                f"{query.organization}/{query.team} (membership: {decision.value})"
            )


# --- Module Notes -----------------------------------------------------------
# A ForbiddenError from the verifier propagates untouched: it means the
# broker's own installation lacks rights, which the API layer reports as a 500.

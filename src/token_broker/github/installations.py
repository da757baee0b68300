"""
token_broker.github.installations

Installation lookup used to auto-detect the owning organization.
"""

from __future__ import annotations

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from token_broker.errors import DecodingError, UpstreamError
from token_broker.github.api import DEFAULT_API_VERSION, github_headers, segment, send
from token_broker.github.identity import IdentitySigner
from token_broker.observability.logging import get_logger

log = get_logger(__name__)


class InstallationAccount(BaseModel):
    login: str
    type: str


class Installation(BaseModel):
    id: int
    account: InstallationAccount | None = None


class InstallationLookup:
    def __init__(
        self,
        *,
        signer: IdentitySigner,
        http: httpx.AsyncClient,
        api_version: str = DEFAULT_API_VERSION,
    ) -> None:
        self._signer = signer
        self._http = http
        self._api_version = api_version

    async def get(self, installation_id: int) -> Installation:
        r = await send(
            self._http,
            "GET",
            f"/app/installations/{segment(installation_id)}",
            headers=github_headers(
                self._signer.sign(),
                user_agent=f"GitHubApp/{self._signer.app_id}",
                api_version=self._api_version,
            ),
        )
        if r.status_code != httpx.codes.OK:
            raise UpstreamError(r.status_code, r.text)
        try:
            return Installation.model_validate_json(r.content)
        except PydanticValidationError as e:
            raise DecodingError(f"decoding installation response: {e.error_count()} invalid field(s)") from e

    async def owning_organization(self, installation_id: int) -> str | None:
        installation = await self.get(installation_id)
        account = installation.account
        # Teams only exist under organizations; a user-owned install has none.
        if account is None or account.type != "Organization" or not account.login:
            log.info("installation_not_org_owned", installation_id=installation_id)
            return None
        return account.login

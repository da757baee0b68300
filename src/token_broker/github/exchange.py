"""
token_broker.github.exchange

Installation token exchange.

Responsibilities:
- Trade a fresh app assertion for an installation access token.
- Refuse responses without a usable token or expiry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from token_broker.errors import InvalidResponseError, UpstreamError
from token_broker.github.api import DEFAULT_API_VERSION, github_headers, segment, send
from token_broker.github.identity import IdentitySigner
from token_broker.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class InstallationCredential:
    token: str = field(repr=False)
    # Absolute expiry exactly as reported upstream.
    expires_at: datetime


class AccessTokenPayload(BaseModel):
    token: str
    expires_at: datetime


def parse_credential(raw: bytes | str) -> InstallationCredential:
    """Decode a `{token, expires_at}` body, rejecting empty tokens and zero expiries."""
    try:
        payload = AccessTokenPayload.model_validate_json(raw)
    except PydanticValidationError as e:
        raise InvalidResponseError(f"decoding token response: {e.error_count()} invalid field(s)") from e

    if not payload.token:
        raise InvalidResponseError("token response has an empty token")
    expires_at = payload.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    if expires_at.timestamp() <= 0:
        raise InvalidResponseError("token response has no expiry")
    return InstallationCredential(token=payload.token, expires_at=expires_at)


class TokenExchanger:
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

    async def exchange(self, installation_id: int) -> InstallationCredential:
        assertion = self._signer.sign()
        app_id = self._signer.app_id
        url = f"/app/installations/{segment(installation_id)}/access_tokens"

        log.info("exchange_requested", app_id=app_id, installation_id=installation_id)
        r = await send(
            self._http,
            "POST",
            url,
            headers=github_headers(
                assertion,
                user_agent=f"GitHubApp/{app_id}",
                api_version=self._api_version,
            ),
        )
        if r.status_code != httpx.codes.CREATED:
            log.warning(
                "exchange_failed",
                app_id=app_id,
                installation_id=installation_id,
                status=r.status_code,
                body=r.text,
            )
            raise UpstreamError(r.status_code, r.text)

        credential = parse_credential(r.content)
        log.info(
            "exchange_succeeded",
            app_id=app_id,
            installation_id=installation_id,
            expires_at=credential.expires_at.isoformat(),
        )
        return credential


# --- Module Notes -----------------------------------------------------------
# `parse_credential` is shared with the consumer client, which decodes the
# broker's own `{token, expires_at}` response the same way.

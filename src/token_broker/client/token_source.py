"""
token_broker.client.token_source

Cached, self-refreshing installation credential for one consumer.

Responsibilities:
- Fetch credentials from the broker's `/token` endpoint.
- Refresh when `now + 1 minute >= expires_at`, one refresh in flight at a time.
- Fail closed: a failed refresh clears the cache and raises to the caller.
"""

from __future__ import annotations

import asyncio
import enum
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import httpx

from token_broker.client.settings import ClientSettings
from token_broker.errors import NetworkError, UpstreamError, ValidationError
from token_broker.github.exchange import InstallationCredential, parse_credential
from token_broker.observability.logging import get_logger

log = get_logger(__name__)

REFRESH_MARGIN = timedelta(minutes=1)


class CredentialState(str, enum.Enum):
    UNISSUED = "unissued"
    VALID = "valid"
    REFRESHING = "refreshing"


class BrokerTokenSource:
    """
    One instance per consumer. Concurrent callers that find the credential
    stale queue on a single lock; the first refreshes, the rest reuse its result.
    """

    def __init__(
        self,
        *,
        settings: ClientSettings,
        http: httpx.AsyncClient,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not settings.is_app_configured():
            raise ValidationError("auth server, app ID and installation ID must all be configured")
        self._settings = settings
        self._http = http
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._lock = asyncio.Lock()
        self._credential: InstallationCredential | None = None
        self._refreshed_at: float | None = None
        self._refreshing = False

    @property
    def state(self) -> CredentialState:
        if self._refreshing:
            return CredentialState.REFRESHING
        if self._credential is None:
            return CredentialState.UNISSUED
        return CredentialState.VALID

    @property
    def last_refreshed(self) -> float | None:
        """`time.monotonic()` reading taken at the last successful refresh."""
        return self._refreshed_at

    @property
    def expires_at(self) -> datetime | None:
        return None if self._credential is None else self._credential.expires_at

    def needs_refresh(self) -> bool:
        credential = self._credential
        if credential is None:
            return True
        return self._clock() + REFRESH_MARGIN >= credential.expires_at

    async def credential(self) -> InstallationCredential:
        credential = self._credential
        if credential is not None and not self.needs_refresh():
            return credential

        async with self._lock:
            # Another caller may have refreshed while we waited.
            if self._credential is not None and not self.needs_refresh():
                return self._credential
            return await self._refresh()

    async def token(self) -> str:
        return (await self.credential()).token

    async def _refresh(self) -> InstallationCredential:
        previous = self._credential
        # Drop the stale credential up front so a failure leaves nothing to reuse.
        self._credential = None
        self._refreshing = True
        log.info(
            "credential_refresh",
            app_id=self._settings.app_id,
            installation_id=self._settings.installation_id,
            previous_expires_at=None if previous is None else previous.expires_at.isoformat(),
        )
        try:
            credential = await self._fetch()
        except Exception as e:
            log.warning("credential_refresh_failed", error=str(e))
            raise
        finally:
            self._refreshing = False

        self._credential = credential
        self._refreshed_at = time.monotonic()
        log.info("credential_refreshed", expires_at=credential.expires_at.isoformat())
        return credential

    async def _fetch(self) -> InstallationCredential:
        url = self._settings.token_url()
        try:
            r = await self._http.post(url, params=self._settings.token_params())
        except httpx.TransportError as e:
            raise NetworkError(f"failed to get token from auth server: {e}") from e

        if r.status_code != httpx.codes.OK:
            raise UpstreamError(r.status_code, r.text, source="auth server")
        return parse_credential(r.content)


# --- Module Notes -----------------------------------------------------------
# The expiry compared against is the broker's `expires_at`, which is the
# platform's own value passed through untouched.

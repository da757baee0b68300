"""
tests.test_token_source

Consumer-side credential cache: refresh margin, single in-flight refresh and
fail-closed behavior.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from fakes import json_response

from token_broker.client.settings import ClientSettings
from token_broker.client.token_source import BrokerTokenSource, CredentialState
from token_broker.errors import InvalidResponseError, NetworkError, UpstreamError, ValidationError

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


class FakeBroker:
    """Serves `/token` with a configurable lifetime and records each request."""

    def __init__(self, ttl: timedelta = timedelta(hours=1), *, delay: float = 0.0) -> None:
        self.ttl = ttl
        self.delay = delay
        self.requests: list[httpx.Request] = []
        self.fail_with: httpx.Response | None = None

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            return self.fail_with
        n = len(self.requests)
        return json_response(
            200,
            {"token": f"ghs_{n}", "expires_at": (NOW + self.ttl).isoformat()},
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))


def _settings(**overrides) -> ClientSettings:
    values = {
        "auth_server": "http://broker.test/",
        "app_id": 123456,
        "installation_id": 987654,
    }
    values.update(overrides)
    return ClientSettings(**values)


def _source(http: httpx.AsyncClient, **overrides) -> BrokerTokenSource:
    return BrokerTokenSource(settings=_settings(**overrides), http=http, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_first_call_issues_and_caches() -> None:
    broker = FakeBroker()
    async with broker.client() as http:
        source = _source(http)
        assert source.state is CredentialState.UNISSUED

        assert await source.token() == "ghs_1"
        assert await source.token() == "ghs_1"

    assert len(broker.requests) == 1
    assert source.state is CredentialState.VALID
    assert source.last_refreshed is not None
    assert source.expires_at == NOW + timedelta(hours=1)


@pytest.mark.asyncio
async def test_request_shape() -> None:
    broker = FakeBroker()
    async with broker.client() as http:
        await _source(http, username="alice", organization="acme-corp", team="core").token()

    (request,) = broker.requests
    assert request.method == "POST"
    assert str(request.url).startswith("http://broker.test/token?")
    assert dict(request.url.params) == {
        "app-id": "123456",
        "installation-id": "987654",
        "username": "alice",
        "org": "acme-corp",
        "team": "core",
    }


@pytest.mark.asyncio
async def test_optional_params_are_omitted() -> None:
    broker = FakeBroker()
    async with broker.client() as http:
        await _source(http).token()

    assert set(broker.requests[0].url.params) == {"app-id", "installation-id"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("ttl", "refreshes"),
    [
        (timedelta(seconds=90), False),
        (timedelta(seconds=61), False),
        (timedelta(seconds=60), True),
        (timedelta(seconds=30), True),
    ],
)
async def test_refresh_margin_is_one_minute(ttl: timedelta, refreshes: bool) -> None:
    broker = FakeBroker(ttl=ttl)
    async with broker.client() as http:
        source = _source(http)
        await source.token()
        assert source.needs_refresh() is refreshes

        token = await source.token()

    assert len(broker.requests) == (2 if refreshes else 1)
    assert token == ("ghs_2" if refreshes else "ghs_1")


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_refresh() -> None:
    broker = FakeBroker(delay=0.05)
    async with broker.client() as http:
        source = _source(http)
        tokens = await asyncio.gather(*(source.token() for _ in range(10)))

    assert len(broker.requests) == 1
    assert set(tokens) == {"ghs_1"}


@pytest.mark.asyncio
async def test_concurrent_callers_share_refresh_of_expired_credential() -> None:
    broker = FakeBroker(ttl=timedelta(seconds=10), delay=0.05)
    async with broker.client() as http:
        source = _source(http)
        await source.token()
        broker.ttl = timedelta(hours=1)

        tokens = await asyncio.gather(*(source.token() for _ in range(10)))

    assert len(broker.requests) == 2
    assert set(tokens) == {"ghs_2"}


@pytest.mark.asyncio
async def test_failed_refresh_discards_stale_credential() -> None:
    broker = FakeBroker(ttl=timedelta(seconds=30))
    async with broker.client() as http:
        source = _source(http)
        assert await source.token() == "ghs_1"

        broker.fail_with = json_response(403, {"message": "user alice is not an active member"})
        with pytest.raises(UpstreamError) as exc_info:
            await source.token()
        assert exc_info.value.status_code == 403
        assert source.state is CredentialState.UNISSUED
        assert source.expires_at is None

        # The next call retries the broker rather than falling back to ghs_1.
        broker.fail_with = None
        broker.ttl = timedelta(hours=1)
        assert await source.token() == "ghs_3"


@pytest.mark.asyncio
async def test_broker_unreachable() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as http:
        source = _source(http)
        with pytest.raises(NetworkError):
            await source.token()
    assert source.state is CredentialState.UNISSUED


@pytest.mark.asyncio
async def test_broker_returns_unusable_credential() -> None:
    broker = FakeBroker()
    broker.fail_with = json_response(200, {"token": "", "expires_at": NOW.isoformat()})
    async with broker.client() as http:
        with pytest.raises(InvalidResponseError):
            await _source(http).token()


def test_incomplete_configuration_is_rejected() -> None:
    with pytest.raises(ValidationError):
        BrokerTokenSource(settings=_settings(installation_id=0), http=httpx.AsyncClient())


def test_token_url_trims_trailing_slash() -> None:
    assert _settings(auth_server="https://broker.example.com//").token_url() == "https://broker.example.com/token"

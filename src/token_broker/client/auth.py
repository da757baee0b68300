"""
token_broker.client.auth

httpx authentication backed by a `BrokerTokenSource`.

Responsibilities:
- Attach the current installation credential to every outbound request.
- Build a platform API client for code that only needs "a valid bearer".
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator

import httpx

from token_broker.client.token_source import BrokerTokenSource
from token_broker.github.api import ACCEPT, DEFAULT_USER_AGENT


class BrokerAuth(httpx.Auth):
    def __init__(self, source: BrokerTokenSource) -> None:
        self._source = source

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("BrokerAuth refreshes asynchronously; use it with httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._source.token()
        request.headers["Authorization"] = f"Bearer {token}"
        request.headers["Accept"] = ACCEPT
        if "user-agent" not in request.headers or request.headers["user-agent"].startswith("python-httpx"):
            request.headers["User-Agent"] = DEFAULT_USER_AGENT
        yield request


def github_client(
    source: BrokerTokenSource,
    *,
    base_url: str = "https://api.github.com",
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url,
        auth=BrokerAuth(source),
        timeout=timeout,
        transport=transport,
    )

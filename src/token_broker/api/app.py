"""
token_broker.api.app

FastAPI app factory for the broker service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Own the upstream httpx client for the lifetime of the process.
- Validate configured key material at startup.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from token_broker import __version__
from token_broker.api.errors import register_exception_handlers
from token_broker.api.routers.health import router as health_router
from token_broker.api.routers.token import router as token_router
from token_broker.broker.policy import GateDefaults
from token_broker.broker.service import CredentialBroker
from token_broker.github.identity import load_private_key
from token_broker.observability.logging import configure_logging, get_logger
from token_broker.observability.middleware import RequestContextMiddleware
from token_broker.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    private_key = settings.private_key_material()
    if private_key is None:
        log.warning("private_key_missing")
    else:
        # Fail at startup rather than on the first /token request.
        load_private_key(private_key)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info(
            "startup",
            env=settings.env,
            organization=settings.organization or None,
            team=settings.team or None,
        )
        # `transport` lets tests substitute a fake GitHub.
        http = httpx.AsyncClient(
            base_url=settings.github_api_base_url,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )
        app.state.broker = CredentialBroker(
            private_key=private_key,
            http=http,
            defaults=GateDefaults(organization=settings.organization, team=settings.team),
            api_version=settings.github_api_version,
        )
        try:
            yield
        finally:
            await http.aclose()
            log.info("shutdown")

    app = FastAPI(
        title="GitHub App Token Broker",
        version=__version__,
        docs_url=None if settings.env == "prod" else "/docs",
        lifespan=lifespan,
    )
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(token_router, tags=["token"])
    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; issuance
# policy stays in `token_broker.broker`.

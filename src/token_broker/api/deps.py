"""
token_broker.api.deps

FastAPI dependency wiring for the API layer.
"""

from __future__ import annotations

from fastapi import Request

from token_broker.broker.service import CredentialBroker


def broker_from_app(request: Request) -> CredentialBroker:
    # Built in the lifespan of `token_broker.api.app.create_app`.
    return request.app.state.broker  # type: ignore[attr-defined]

"""
token_broker.api.routers.token

Credential issuance endpoint.

Responsibilities:
- Expose `POST /token` with the broker's query parameters.
- Hand raw parameters to `BrokerRequest.parse` and return `{token, expires_at}`.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from token_broker.api.deps import broker_from_app
from token_broker.broker.models import BrokerRequest
from token_broker.broker.service import CredentialBroker

router = APIRouter()


class TokenResponse(BaseModel):
    token: str
    expires_at: datetime


# Parameters are taken as raw strings; BrokerRequest.parse owns validation
# so malformed values produce the 400 envelope instead of a 422.
@router.post("/token", response_model=TokenResponse)
async def issue_token(
    app_id: str | None = Query(default=None, alias="app-id"),
    installation_id: str | None = Query(default=None, alias="installation-id"),
    username: str | None = Query(default=None),
    org: str | None = Query(default=None),
    team: str | None = Query(default=None),
    broker: CredentialBroker = Depends(broker_from_app),
) -> TokenResponse:
    request = BrokerRequest.parse(
        app_id=app_id,
        installation_id=installation_id,
        username=username,
        organization=org,
        team=team,
    )
    credential = await broker.issue(request)
    return TokenResponse(token=credential.token, expires_at=credential.expires_at)

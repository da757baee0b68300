"""
token_broker.api.routers.health

Liveness endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # No downstream calls: reachable process == healthy.
    return {"status": "ok"}

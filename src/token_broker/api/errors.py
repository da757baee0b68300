"""
token_broker.api.errors

Exception handlers producing the broker's single error envelope.

Responsibilities:
- ValidationError -> 400, AuthorizationError -> 403, other BrokerError -> 500.
- Render framework HTTP errors (404/405) in the same `{"message": ...}` shape.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from token_broker.errors import AuthorizationError, BrokerError, ValidationError
from token_broker.observability.logging import get_logger

log = get_logger(__name__)


def status_for(exc: BrokerError) -> int:
    if isinstance(exc, ValidationError):
        return HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthorizationError):
        return HTTP_403_FORBIDDEN
    return HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _broker_error(_: Request, exc: BrokerError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        log.error("token_request_failed", error_type=type(exc).__name__, error=str(exc))
    else:
        log.info("token_request_rejected", status=status_code, error=str(exc))
    return error_response(status_code, str(exc))


async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BrokerError, _broker_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_error)  # type: ignore[arg-type]

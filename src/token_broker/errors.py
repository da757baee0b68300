"""
token_broker.errors

Exception taxonomy shared by the broker, its upstream clients and the consumer.

Responsibilities:
- Separate caller mistakes, authorization failures and upstream/operator faults.
- Carry upstream status and body verbatim for diagnosis.
"""

from __future__ import annotations


class BrokerError(Exception):
    """Base class; `str(err)` is the human-readable message returned to callers."""


class ValidationError(BrokerError):
    """Malformed or missing caller input. Never retried automatically."""


class AuthorizationError(BrokerError):
    """The membership gate rejected the user."""


class ForbiddenError(BrokerError):
    """The broker's own credential lacks rights for a membership check."""


class UpstreamError(BrokerError):
    def __init__(self, status_code: int, body: str, *, source: str = "GitHub API") -> None:
        super().__init__(f"{source} error: {status_code} - {body}")
        self.status_code = status_code
        self.body = body


class NetworkError(BrokerError):
    pass


class DecodingError(BrokerError):
    pass


class InvalidResponseError(DecodingError):
    """Response decoded but lacks a usable token or expiry."""


class IdentityError(BrokerError):
    pass


class KeyFormatError(IdentityError):
    pass


class KeyTypeError(IdentityError):
    pass


class SigningError(IdentityError):
    pass


# --- Module Notes -----------------------------------------------------------
# HTTP status mapping for these lives in `token_broker.api.errors`.

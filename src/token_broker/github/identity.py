"""
token_broker.github.identity

GitHub App identity and assertion signing.

Responsibilities:
- Decode PEM private key material and insist on an RSA key.
- Mint a fresh RS256 assertion (iss=app id, 10 minute lifetime) per call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from token_broker.errors import KeyFormatError, KeyTypeError, SigningError
from token_broker.observability.logging import get_logger

log = get_logger(__name__)

# GitHub rejects app assertions that live longer than this.
ASSERTION_TTL = timedelta(minutes=10)


@dataclass(frozen=True, slots=True)
class AppIdentity:
    app_id: int
    private_key: bytes | None = field(default=None, repr=False)


def load_private_key(material: bytes) -> rsa.RSAPrivateKey:
    if not material or not material.strip():
        raise KeyFormatError("private key material is empty")
    try:
        key = serialization.load_pem_private_key(material, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyFormatError(f"failed to decode private key: {e}") from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyTypeError(f"expected an RSA private key, got {type(key).__name__}")
    return key


class IdentitySigner:
    """
    Holds one AppIdentity and signs assertions for it.

    The key is decoded once here. A signer built without key material can be
    constructed, but `sign()` refuses to produce anything.
    """

    def __init__(self, identity: AppIdentity, *, clock=None) -> None:
        self._app_id = identity.app_id
        self._key = None if identity.private_key is None else load_private_key(identity.private_key)
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    @property
    def app_id(self) -> int:
        return self._app_id

    def sign(self) -> str:
        if self._key is None:
            raise SigningError(f"no private key loaded for app-id={self._app_id}")

        now = self._clock()
        payload = {
            "iss": str(self._app_id),
            "iat": int(now.timestamp()),
            "exp": int((now + ASSERTION_TTL).timestamp()),
        }
        try:
            token = jwt.encode(payload, self._key, algorithm="RS256")
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise SigningError(f"signing assertion: {e}") from e

        log.debug("assertion_signed", app_id=self._app_id, expires_at=payload["exp"])
        return token


# --- Module Notes -----------------------------------------------------------
# Assertions are never cached: `TokenExchanger` asks for a new one per exchange.

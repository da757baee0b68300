"""
token_broker.api.__main__

Entrypoint for running the broker via `python -m token_broker.api`.

Responsibilities:
- Load settings and refuse to start without key material.
- Create the app and start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import sys

import uvicorn

from token_broker.api.app import create_app
from token_broker.errors import IdentityError
from token_broker.settings import get_settings


def main() -> None:
    settings = get_settings()
    try:
        if settings.private_key_material() is None:
            sys.exit("TOKEN_BROKER_PRIVATE_KEY_PATH or TOKEN_BROKER_PRIVATE_KEY is required")
        app = create_app(settings=settings)
    except IdentityError as e:
        sys.exit(f"invalid private key: {e}")

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()

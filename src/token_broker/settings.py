"""
token_broker.settings

Central configuration model for the broker service (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the broker.
- Hide private key material from repr/logging.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from token_broker.errors import KeyFormatError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TOKEN_BROKER_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "token-broker"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # GitHub App identity. The app ID itself arrives per request.
    private_key_path: Path | None = None
    private_key: str | None = Field(default=None, repr=False)

    # Membership gate defaults; requests may override both.
    organization: str = ""
    team: str = ""

    # Upstream platform
    github_api_base_url: str = "https://api.github.com"
    github_api_version: str = "2022-11-28"
    http_timeout_seconds: float = 10.0

    def private_key_material(self) -> bytes | None:
        # Inline key wins over the file so containers can inject it via env.
        if self.private_key:
            return self.private_key.encode()
        if self.private_key_path is None:
            return None
        try:
            return self.private_key_path.read_bytes()
        except OSError as e:
            raise KeyFormatError(f"cannot read private key file: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Consumer-side settings live in `token_broker.client.settings`; the two
# processes are configured independently.

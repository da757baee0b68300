"""
token_broker.client.settings

Env-driven configuration for processes that consume broker credentials.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GH_TOKEN_BROKER_", case_sensitive=False)

    auth_server: str = ""
    app_id: int = 0
    installation_id: int = 0

    # Forwarded to the broker; each overrides the broker's own default.
    username: str = ""
    organization: str = ""
    team: str = ""

    timeout_seconds: float = 10.0

    def is_app_configured(self) -> bool:
        return bool(self.auth_server) and self.app_id != 0 and self.installation_id != 0

    def token_url(self) -> str:
        return f"{self.auth_server.rstrip('/')}/token"

    def token_params(self) -> dict[str, str]:
        params = {"app-id": str(self.app_id), "installation-id": str(self.installation_id)}
        if self.username:
            params["username"] = self.username
        if self.organization:
            params["org"] = self.organization
        if self.team:
            params["team"] = self.team
        return params

"""
token_broker.broker.models

Request-side domain types for the broker.
"""

from __future__ import annotations

from dataclasses import dataclass

from token_broker.errors import ValidationError
from token_broker.github.api import segment


def _parse_id(name: str, raw: str | None) -> int:
    if raw is None or not raw.strip():
        raise ValidationError(f"{name} query parameter is required")
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValidationError(f"invalid {name}: {raw!r} is not an integer") from None
    if value <= 0:
        raise ValidationError(f"invalid {name}: must be a positive integer")
    return value


def _clean(raw: str | None) -> str | None:
    if raw is None:
        return None
    raw = raw.strip()
    if raw:
        # These end up as upstream URL path segments.
        segment(raw)
    return raw or None


@dataclass(frozen=True, slots=True)
class BrokerRequest:
    app_id: int
    installation_id: int
    username: str | None = None
    organization: str | None = None
    team: str | None = None

    @classmethod
    def parse(
        cls,
        *,
        app_id: str | None,
        installation_id: str | None,
        username: str | None = None,
        organization: str | None = None,
        team: str | None = None,
    ) -> BrokerRequest:
        return cls(
            app_id=_parse_id("app-id", app_id),
            installation_id=_parse_id("installation-id", installation_id),
            username=_clean(username),
            organization=_clean(organization),
            team=_clean(team),
        )


@dataclass(frozen=True, slots=True)
class MembershipQuery:
    username: str
    organization: str
    team: str | None = None

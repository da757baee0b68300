"""
token_broker.broker.policy

Membership gate selection.

Responsibilities:
- Merge request overrides with server defaults once per request.
- Produce exactly one gate variant: no gate, organization gate or team gate.
"""

from __future__ import annotations

from dataclasses import dataclass

from token_broker.broker.models import BrokerRequest


@dataclass(frozen=True, slots=True)
class GateDefaults:
    organization: str = ""
    team: str = ""


@dataclass(frozen=True, slots=True)
class NoGate:
    pass


@dataclass(frozen=True, slots=True)
class OrgGate:
    organization: str


@dataclass(frozen=True, slots=True)
class TeamGate:
    team: str
    # None until resolved from the installation's owning account.
    organization: str | None = None


Gate = NoGate | OrgGate | TeamGate


def select_gate(request: BrokerRequest, defaults: GateDefaults) -> Gate:
    organization = request.organization or defaults.organization or None
    team = request.team or defaults.team or None

    if team:
        return TeamGate(team=team, organization=organization)
    if organization:
        return OrgGate(organization=organization)
    return NoGate()


# --- Module Notes -----------------------------------------------------------
# Request values always win; an empty override falls back to the server default.

"""Integration and SOC team member records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.contracts.codec import to_plain_dict
from src.contracts.enums import IntegrationHealth, IntegrationStatus, TeamMemberStatus


@dataclass(slots=True)
class Integration:
    """A connected data source, keyed by ``name``."""

    name: str
    status: IntegrationStatus
    health: IntegrationHealth
    last_sync: str  # relative, e.g. "2 minutes ago"

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)


@dataclass(slots=True)
class TeamMember:
    name: str
    role: str
    status: TeamMemberStatus
    active_alerts: int = 0

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)

"""Semantic change events produced by the change detector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from src.contracts import (
    Alert,
    AlertStatus,
    Integration,
    IntegrationHealth,
    IntegrationStatus,
    TeamMember,
    TeamMemberStatus,
)


@dataclass(frozen=True, slots=True)
class NewAlert:
    alert: Alert


@dataclass(frozen=True, slots=True)
class AlertStatusChanged:
    alert: Alert
    previous: AlertStatus

    @property
    def escalated(self) -> bool:
        return self.previous is AlertStatus.NEW and self.alert.status in (
            AlertStatus.ACTIVE_THREAT, AlertStatus.UNDER_INVESTIGATION,
        )


@dataclass(frozen=True, slots=True)
class IntegrationStatusChanged:
    integration: Integration
    previous: IntegrationStatus
    previous_health: IntegrationHealth | None = None

    @property
    def health_only(self) -> bool:
        return self.previous is self.integration.status


@dataclass(frozen=True, slots=True)
class TeamStatusChanged:
    member: TeamMember
    previous: TeamMemberStatus


ChangeEvent = Union[NewAlert, AlertStatusChanged, IntegrationStatusChanged, TeamStatusChanged]

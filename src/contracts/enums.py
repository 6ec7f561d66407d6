"""Canonical enumerations for the SOC state model."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}

# Fixed walk order for cumulative weighted draws
SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)


class AlertStatus(str, Enum):
    NEW = "New"
    ACTIVE_THREAT = "Active Threat"
    UNDER_INVESTIGATION = "Under Investigation"
    AUTO_CONTAINED = "Auto-Contained"
    RESOLVED = "Resolved"
    INVESTIGATING = "Investigating"


class IntegrationStatus(str, Enum):
    CONNECTED = "Connected"
    DEGRADED = "Degraded"
    DISCONNECTED = "Disconnected"


class IntegrationHealth(str, Enum):
    HEALTHY = "Healthy"
    WARNING = "Warning"
    ERROR = "Error"


STATUS_HEALTH: dict[IntegrationStatus, IntegrationHealth] = {
    IntegrationStatus.CONNECTED: IntegrationHealth.HEALTHY,
    IntegrationStatus.DEGRADED: IntegrationHealth.WARNING,
    IntegrationStatus.DISCONNECTED: IntegrationHealth.ERROR,
}


class TeamMemberStatus(str, Enum):
    ONLINE = "Online"
    AWAY = "Away"
    OFFLINE = "Offline"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    ALERT = "alert"


class VariationIntensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

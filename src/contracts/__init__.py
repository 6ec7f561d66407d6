"""SOC state contract -- canonical records shared by all modules."""

from src.contracts.alert import Alert, HuntExecution, HuntResult, SyncEvent
from src.contracts.enums import (
    SEVERITY_ORDER,
    STATUS_HEALTH,
    AlertStatus,
    IntegrationHealth,
    IntegrationStatus,
    NotificationType,
    Severity,
    TeamMemberStatus,
    VariationIntensity,
)
from src.contracts.integration import Integration, TeamMember
from src.contracts.metrics import Metrics
from src.contracts.notification import Notification, NotificationAction

__all__ = [
    "SEVERITY_ORDER",
    "STATUS_HEALTH",
    "Alert",
    "AlertStatus",
    "HuntExecution",
    "HuntResult",
    "Integration",
    "IntegrationHealth",
    "IntegrationStatus",
    "Metrics",
    "Notification",
    "NotificationAction",
    "NotificationType",
    "Severity",
    "SyncEvent",
    "TeamMember",
    "TeamMemberStatus",
    "VariationIntensity",
]

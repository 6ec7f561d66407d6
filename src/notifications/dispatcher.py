"""Notification Dispatcher -- turn change events into user notifications.

Pipeline per event
──────────────────
  1. category gate     alerts / integrations / team / system enable flags;
                       team events other than Online <-> Offline are ignored
  2. severity gate     alert events need ``severity.rank >= threshold.rank``
  3. rate limit        shared sliding 60 s window; over the cap the event is
                       dropped, never queued or retried
  4. format            title / duration / persistence / actions by kind

Formatting
──────────
  New alert       Critical  "Critical Security Alert"  duration 0, persistent
                  High      "High Priority Alert"      10 s
                  Medium    "Security Alert"           7 s
                  Low       "Security Notice"          5 s
                  Critical and High carry Investigate / Dismiss actions.
  Escalation      Critical -> error, High -> warning; Investigate action.
  Integration     Connected -> success, Degraded -> warning (8 s, Check
                  Status), Disconnected -> error (duration 0, Troubleshoot).
                  Health-only change: Healthy -> success, else warning.
  Team            info, 4 s.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.contracts import (
    Alert,
    Integration,
    IntegrationHealth,
    IntegrationStatus,
    Notification,
    NotificationAction,
    NotificationType,
    Severity,
    TeamMemberStatus,
)
from src.notifications.center import NotificationCenter
from src.notifications.events import (
    AlertStatusChanged,
    ChangeEvent,
    IntegrationStatusChanged,
    NewAlert,
    TeamStatusChanged,
)
from src.notifications.rate_limiter import RateLimiter
from src.simulation.config import NotificationConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AlertStyle:
    title: str
    duration: int
    persistent: bool = False


ALERT_STYLES: dict[Severity, AlertStyle] = {
    Severity.CRITICAL: AlertStyle("Critical Security Alert", 0, persistent=True),
    Severity.HIGH: AlertStyle("High Priority Alert", 10_000),
    Severity.MEDIUM: AlertStyle("Security Alert", 7_000),
    Severity.LOW: AlertStyle("Security Notice", 5_000),
}

INTEGRATION_WARNING_MS = 8_000
TEAM_UPDATE_MS = 4_000
SYSTEM_STATUS_MS = 8_000


def _alert_actions(alert: Alert) -> list[NotificationAction]:
    return [
        NotificationAction("Investigate", f"investigate:{alert.id}", "primary"),
        NotificationAction("Dismiss", "dismiss"),
    ]


@dataclass(slots=True)
class DispatchStats:
    delivered: int = 0
    below_threshold: int = 0
    rate_limited: int = 0
    disabled: int = 0
    ignored: int = 0


class NotificationDispatcher:
    def __init__(self, center: NotificationCenter,
                 config: NotificationConfig | None = None,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.center = center
        self.config = config or NotificationConfig()
        self._clock = clock
        self.limiter = RateLimiter(self.config.max_per_minute, 60.0, clock)
        self.stats = DispatchStats()

    def configure(self, config: NotificationConfig) -> None:
        """Swap settings; the rate window survives unless the cap changes."""
        if config.max_per_minute != self.limiter.max_per_window:
            self.limiter = RateLimiter(config.max_per_minute, 60.0, self._clock)
        self.config = config

    # ── gates ────────────────────────────────────────────────────────────

    def meets_threshold(self, severity: Severity) -> bool:
        return severity.rank >= self.config.severity_threshold.rank

    def _enabled(self, event: ChangeEvent) -> bool:
        if isinstance(event, (NewAlert, AlertStatusChanged)):
            return self.config.enable_alerts
        if isinstance(event, IntegrationStatusChanged):
            return self.config.enable_integrations
        if isinstance(event, TeamStatusChanged):
            return self.config.enable_team
        return False

    @staticmethod
    def _relevant(event: ChangeEvent) -> bool:
        if isinstance(event, AlertStatusChanged):
            return event.escalated
        if isinstance(event, TeamStatusChanged):
            pair = {event.previous, event.member.status}
            return pair == {TeamMemberStatus.ONLINE, TeamMemberStatus.OFFLINE}
        return True

    def _admit(self, what: str) -> bool:
        if self.limiter.try_acquire():
            return True
        self.stats.rate_limited += 1
        log.debug("Rate limit reached (%d/min); dropped %s",
                  self.limiter.max_per_window, what)
        return False

    # ── entry points ─────────────────────────────────────────────────────

    def dispatch(self, event: ChangeEvent) -> Notification | None:
        """Run *event* through the gates; return the queued notification or None."""
        if not self._enabled(event):
            self.stats.disabled += 1
            return None
        if not self._relevant(event):
            self.stats.ignored += 1
            return None
        if isinstance(event, (NewAlert, AlertStatusChanged)):
            if not self.meets_threshold(event.alert.severity):
                self.stats.below_threshold += 1
                return None
        if not self._admit(type(event).__name__):
            return None

        if isinstance(event, NewAlert):
            nid = self._new_alert(event.alert)
        elif isinstance(event, AlertStatusChanged):
            nid = self._escalated(event.alert)
        elif isinstance(event, IntegrationStatusChanged):
            nid = self._integration(event)
        else:
            nid = self._team(event)
        self.stats.delivered += 1
        return self.center.get(nid)

    def dispatch_all(self, events: list[ChangeEvent]) -> list[Notification]:
        out = []
        for event in events:
            note = self.dispatch(event)
            if note is not None:
                out.append(note)
        return out

    # ── formatting ───────────────────────────────────────────────────────

    def _new_alert(self, alert: Alert) -> str:
        style = ALERT_STYLES[alert.severity]
        actions = (
            _alert_actions(alert)
            if alert.severity in (Severity.CRITICAL, Severity.HIGH) else []
        )
        return self.center.show_alert(
            f"{alert.title} detected from {alert.source}",
            title=style.title,
            duration=style.duration,
            persistent=style.persistent,
            actions=actions,
            metadata={
                "alertId": alert.id,
                "severity": alert.severity.value,
                "source": alert.source,
            },
        )

    def _escalated(self, alert: Alert) -> str:
        meta: dict[str, Any] = {
            "alertId": alert.id,
            "severity": alert.severity.value,
            "status": alert.status.value,
            "escalated": True,
        }
        message = f"{alert.title} escalated to {alert.status.value}"
        actions = [NotificationAction("Investigate", f"investigate:{alert.id}", "primary")]
        if alert.severity is Severity.CRITICAL:
            return self.center.show_error(message, title="Alert Escalated",
                                          actions=actions, metadata=meta)
        return self.center.show_warning(message, title="Alert Escalated",
                                        duration=INTEGRATION_WARNING_MS,
                                        actions=actions, metadata=meta)

    def _integration(self, event: IntegrationStatusChanged) -> str:
        integ = event.integration
        meta = {"integration": integ.name, "status": integ.status.value,
                "health": integ.health.value}
        if event.health_only:
            return self._integration_health(integ, meta)
        if integ.status is IntegrationStatus.CONNECTED:
            return self.center.show_success(
                f"{integ.name} integration is now connected",
                title="Integration Restored", metadata=meta,
            )
        if integ.status is IntegrationStatus.DEGRADED:
            return self.center.show_warning(
                f"{integ.name} integration is experiencing issues",
                title="Integration Degraded",
                duration=INTEGRATION_WARNING_MS,
                actions=[NotificationAction("Check Status", "navigate:integrations")],
                metadata=meta,
            )
        return self.center.show_error(
            f"{integ.name} integration has disconnected",
            title="Integration Offline",
            duration=0,
            actions=[NotificationAction(
                "Troubleshoot", f"troubleshoot:{integ.name}", "primary")],
            metadata=meta,
        )

    def _integration_health(self, integ: Integration, meta: dict[str, Any]) -> str:
        if integ.health is IntegrationHealth.HEALTHY:
            return self.center.show_success(
                f"{integ.name} integration health is back to normal",
                title="Integration Healthy", metadata=meta,
            )
        return self.center.show_warning(
            f"{integ.name} integration health is now {integ.health.value}",
            title="Integration Health Warning",
            duration=INTEGRATION_WARNING_MS,
            actions=[NotificationAction("Check Status", "navigate:integrations")],
            metadata=meta,
        )

    def _team(self, event: TeamStatusChanged) -> str:
        name = event.member.name
        message = (
            f"{name} has gone offline"
            if event.member.status is TeamMemberStatus.OFFLINE
            else f"{name} is now online"
        )
        return self.center.show_info(message, title="Team Status Update",
                                     duration=TEAM_UPDATE_MS)

    # ── manual triggers ──────────────────────────────────────────────────

    def trigger_alert_notification(self, alert: Alert) -> Notification | None:
        """Raise a notification for *alert* on demand (threshold applies)."""
        if not self.meets_threshold(alert.severity):
            self.stats.below_threshold += 1
            return None
        nid = self.center.show_alert(
            f"Manual alert: {alert.title}",
            title="Manual Alert",
            metadata={"alertId": alert.id, "manual": True},
        )
        self.stats.delivered += 1
        return self.center.get(nid)

    def trigger_system_notification(self, message: str,
                                    type: NotificationType = NotificationType.INFO
                                    ) -> Notification:
        show = {
            NotificationType.INFO: self.center.show_info,
            NotificationType.SUCCESS: self.center.show_success,
            NotificationType.WARNING: self.center.show_warning,
            NotificationType.ERROR: self.center.show_error,
        }.get(type)
        if show is None:
            raise ValueError(f"System notifications cannot be of type '{type.value}'")
        nid = show(message, title="System Notification")
        self.stats.delivered += 1
        return self.center.get(nid)

    def check_system_health(self, integrations: list[Integration] | tuple[Integration, ...]
                            ) -> Notification | None:
        """Warn when too few integrations are connected.

        Below 50% connected raises an error, below 80% a warning; an empty
        integration list counts as fully healthy.
        """
        if not self.config.enable_system:
            self.stats.disabled += 1
            return None
        total = len(integrations)
        connected = sum(1 for i in integrations if i.status is IntegrationStatus.CONNECTED)
        pct = connected / total * 100 if total else 100.0
        if pct >= 80:
            return None
        if not self._admit("system health"):
            return None

        if pct < 50:
            nid = self.center.show_error(
                f"System health is degraded ({round(pct)}% integrations online)",
                title="System Health Alert",
                duration=0,
                actions=[NotificationAction("View Status", "navigate:status", "primary")],
                metadata={"connectedPct": round(pct, 1)},
            )
        else:
            nid = self.center.show_warning(
                f"Some integrations are offline ({round(pct)}% healthy)",
                title="System Status",
                duration=SYSTEM_STATUS_MS,
                metadata={"connectedPct": round(pct, 1)},
            )
        self.stats.delivered += 1
        return self.center.get(nid)

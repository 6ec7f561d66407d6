"""Change Detector -- diff consecutive store snapshots into change events.

Only the collections that matter for notifications are compared:

    alerts        id not seen before            -> NewAlert
                  same id, different status     -> AlertStatusChanged
    integrations  same name, different status
                  or health                     -> IntegrationStatusChanged
    team          same name, different status   -> TeamStatusChanged

Entities that appear or disappear between snapshots never produce a
status-change event.
"""

from __future__ import annotations

import logging

from src.contracts import Alert, Integration, TeamMember
from src.notifications.events import (
    AlertStatusChanged,
    ChangeEvent,
    IntegrationStatusChanged,
    NewAlert,
    TeamStatusChanged,
)
from src.store.state import StateSnapshot

log = logging.getLogger(__name__)


class ChangeDetector:
    """Holds the previous snapshot's keys and statuses between diffs."""

    def __init__(self) -> None:
        self._alerts: dict[str, Alert] | None = None
        self._integrations: dict[str, Integration] = {}
        self._team: dict[str, TeamMember] = {}

    @property
    def primed(self) -> bool:
        return self._alerts is not None

    def prime(self, snapshot: StateSnapshot) -> None:
        """Record *snapshot* as the baseline without emitting anything."""
        self._alerts = {a.id: a for a in snapshot.alerts}
        self._integrations = {i.name: i for i in snapshot.integrations}
        self._team = {m.name: m for m in snapshot.team}

    def reset(self) -> None:
        self._alerts = None
        self._integrations = {}
        self._team = {}

    def diff(self, snapshot: StateSnapshot) -> list[ChangeEvent]:
        """Events between the stored baseline and *snapshot*; then re-baseline.

        An unprimed detector treats every alert in *snapshot* as new.
        """
        prev_alerts = self._alerts or {}
        events: list[ChangeEvent] = []

        # newest first in the store; report in arrival order
        for alert in reversed(snapshot.alerts):
            before = prev_alerts.get(alert.id)
            if before is None:
                events.append(NewAlert(alert))
            elif before.status is not alert.status:
                events.append(AlertStatusChanged(alert, before.status))

        for integ in snapshot.integrations:
            before_i = self._integrations.get(integ.name)
            if before_i is None:
                continue
            if before_i.status is not integ.status or before_i.health is not integ.health:
                events.append(IntegrationStatusChanged(integ, before_i.status, before_i.health))

        for member in snapshot.team:
            before_m = self._team.get(member.name)
            if before_m is not None and before_m.status is not member.status:
                events.append(TeamStatusChanged(member, before_m.status))

        self.prime(snapshot)
        if events:
            log.debug("Detected %d change(s)", len(events))
        return events

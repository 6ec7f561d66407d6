"""Integration health -- probabilistic status transitions and sync refresh.

Transition table (one uniform draw per integration per health check)
─────────────────────────────────────────────────────────────────────
    Connected     u < oc*0.5                  -> Degraded / Warning
                  u < oc*0.5 + oc             -> Disconnected / Error
    Degraded      u < rc*0.7                  -> Connected / Healthy
                  u < rc*0.7 + oc*2           -> Disconnected / Error
    Disconnected  u < rc*0.5                  -> Degraded / Warning

    ``oc`` = outage chance, ``rc`` = recovery chance.  Branches are
    mutually exclusive: each outcome owns its own slice of [0, 1).

Every transition writes the status together with its correlated health
(see ``STATUS_HEALTH``) and a fresh ``last_sync`` from the new status band.
"""

from __future__ import annotations

import dataclasses
import logging
import random
from dataclasses import dataclass
from datetime import datetime

from src.contracts import (
    STATUS_HEALTH,
    Integration,
    IntegrationHealth,
    IntegrationStatus,
    SyncEvent,
)
from src.shared.timeutil import format_ts, utc_now
from src.simulation.generators import generate_sync_time

log = logging.getLogger(__name__)

# Chance that a sync refresh is attempted, by current status
SYNC_UPDATE_PROBABILITY: dict[IntegrationStatus, float] = {
    IntegrationStatus.CONNECTED: 0.6,
    IntegrationStatus.DEGRADED: 0.3,
    IntegrationStatus.DISCONNECTED: 0.1,
}
DISCONNECTED_SKIP_CHANCE = 0.8


class HealthStateMachine:
    def __init__(self, outage_chance: float, recovery_chance: float,
                 rng: random.Random) -> None:
        self.outage_chance = outage_chance
        self.recovery_chance = recovery_chance
        self.rng = rng

    def _transitions(self, status: IntegrationStatus) -> list[tuple[float, IntegrationStatus]]:
        """Ordered (probability, target) branches for *status*."""
        oc, rc = self.outage_chance, self.recovery_chance
        if status is IntegrationStatus.CONNECTED:
            return [(oc * 0.5, IntegrationStatus.DEGRADED), (oc, IntegrationStatus.DISCONNECTED)]
        if status is IntegrationStatus.DEGRADED:
            return [(rc * 0.7, IntegrationStatus.CONNECTED),
                    (oc * 2, IntegrationStatus.DISCONNECTED)]
        return [(rc * 0.5, IntegrationStatus.DEGRADED)]

    def next_status(self, status: IntegrationStatus) -> IntegrationStatus | None:
        """Draw once and return the new status, or ``None`` to stay put."""
        u = self.rng.random()
        cumulative = 0.0
        for prob, target in self._transitions(status):
            cumulative += prob
            if u < cumulative:
                return target
        return None

    def tick(self, integration: Integration) -> Integration:
        """Return *integration* after one health check (a copy when it changed)."""
        target = self.next_status(integration.status)
        if target is None:
            return integration
        changed = dataclasses.replace(
            integration,
            status=target,
            health=STATUS_HEALTH[target],
            last_sync=generate_sync_time(target, self.rng),
        )
        log.info("Integration %s: %s -> %s", integration.name,
                 integration.status.value, target.value)
        return changed


@dataclass(slots=True)
class SyncCounters:
    total_syncs: int = 0
    successful_syncs: int = 0
    failed_syncs: int = 0
    last_sync_time: str | None = None


class SyncMonitor:
    """Refreshes ``last_sync`` strings and keeps sync counters."""

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng
        self.counters = SyncCounters()

    def update_sync_times(self, integrations: list[Integration] | tuple[Integration, ...],
                          now: datetime | None = None) -> list[SyncEvent]:
        """One sync pass; returns an event per integration that refreshed."""
        now = now or utc_now()
        events: list[SyncEvent] = []
        for integ in integrations:
            if (integ.status is IntegrationStatus.DISCONNECTED
                    and self.rng.random() < DISCONNECTED_SKIP_CHANCE):
                continue
            if self.rng.random() >= SYNC_UPDATE_PROBABILITY[integ.status]:
                continue
            events.append(SyncEvent(
                integration_name=integ.name,
                timestamp=format_ts(now),
                sync_time=generate_sync_time(integ.status, self.rng),
                status=integ.status,
                health=integ.health,
            ))

        self.counters.total_syncs += len(events)
        self.counters.successful_syncs += len(events)
        if events:
            self.counters.last_sync_time = format_ts(now)
        log.debug("Sync pass: %d/%d integrations refreshed", len(events), len(integrations))
        return events

    def record_transition(self, before: Integration, after: Integration) -> None:
        """Count a failed sync when a connected integration drops."""
        if (before.status is IntegrationStatus.CONNECTED
                and after.status is not IntegrationStatus.CONNECTED):
            self.counters.failed_syncs += 1

    def reset(self) -> None:
        self.counters = SyncCounters()


def force_sync_all(integrations: list[Integration] | tuple[Integration, ...],
                   now: datetime | None = None) -> list[SyncEvent]:
    """Mark every reachable integration as synced "Just now"."""
    now = now or utc_now()
    return [
        SyncEvent(i.name, format_ts(now), "Just now", i.status, i.health)
        for i in integrations
        if i.status is not IntegrationStatus.DISCONNECTED
    ]


@dataclass(slots=True)
class IntegrationStats:
    total_integrations: int
    status_breakdown: dict[str, int]
    health_breakdown: dict[str, int]
    uptime_pct: float
    health_score_pct: float
    success_rate_pct: float
    total_syncs: int = 0
    successful_syncs: int = 0
    failed_syncs: int = 0
    last_sync_time: str | None = None


def integration_stats(integrations: list[Integration] | tuple[Integration, ...],
                      counters: SyncCounters | None = None) -> IntegrationStats:
    """Status/health breakdowns plus uptime, health score and sync success rate.

    Percentages are rounded to one decimal; with no integrations uptime and
    health score are 0, with no syncs the success rate is 100.
    """
    counters = counters or SyncCounters()
    total = len(integrations)
    status_breakdown = {s.value: 0 for s in IntegrationStatus}
    health_breakdown = {h.value: 0 for h in IntegrationHealth}
    for i in integrations:
        status_breakdown[i.status.value] += 1
        health_breakdown[i.health.value] += 1

    def _pct(n: int, d: int, empty: float) -> float:
        return round(n / d * 100, 1) if d > 0 else empty

    return IntegrationStats(
        total_integrations=total,
        status_breakdown=status_breakdown,
        health_breakdown=health_breakdown,
        uptime_pct=_pct(status_breakdown[IntegrationStatus.CONNECTED.value], total, 0.0),
        health_score_pct=_pct(health_breakdown[IntegrationHealth.HEALTHY.value], total, 0.0),
        success_rate_pct=_pct(counters.successful_syncs, counters.total_syncs, 100.0),
        total_syncs=counters.total_syncs,
        successful_syncs=counters.successful_syncs,
        failed_syncs=counters.failed_syncs,
        last_sync_time=counters.last_sync_time,
    )

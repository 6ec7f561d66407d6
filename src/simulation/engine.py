"""Simulation engine -- periodic producers writing through the StateStore.

Producers (one timer each)
──────────────────────────
  alerts      1..max_per_interval new alerts, total_alerts bumped to match
  escalation  age-based promotion, every threshold / 2
  sync        last_sync refresh + sync history
  health      integration state machine
  metrics     bounded metrics drift
  team        analyst status / workload drift
  hunts       one background hunt finding

Every write goes through the store.  While the engine runs, the change
detector is subscribed to the store and feeds the notification
dispatcher; ``stop()`` unsubscribes it and cancels every timer.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import random as _random_mod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.contracts import Alert, HuntExecution, HuntResult, Metrics, SyncEvent
from src.notifications.detector import ChangeDetector
from src.notifications.dispatcher import NotificationDispatcher
from src.shared.ids import IdFactory
from src.shared.timeutil import format_ts, utc_now
from src.simulation.config import SimulationConfig
from src.simulation.escalation import escalate
from src.simulation.generators import AlertGenerator, generate_hunt_result, run_hunt_query
from src.simulation.health import (
    HealthStateMachine,
    IntegrationStats,
    SyncMonitor,
    force_sync_all,
    integration_stats,
)
from src.simulation.metrics_drift import MetricsHistory, MetricsStats, drift
from src.simulation.scheduler import PeriodicTask, Scheduler
from src.simulation.team import drift_team
from src.store.state import (
    AddAlert,
    AddHuntResult,
    AddSyncEvent,
    SetError,
    SetLoading,
    SetMetrics,
    StateSnapshot,
    StateUpdate,
    UpdateAlert,
    UpdateIntegration,
    UpdateTeamMember,
)
from src.store.state_store import StateStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class UpdateStats:
    alerts_generated: int = 0
    alerts_escalated: int = 0
    sync_updates: int = 0
    health_changes: int = 0
    metrics_updates: int = 0
    team_updates: int = 0
    hunt_results: int = 0
    last_alert_time: str | None = None
    last_escalation_time: str | None = None
    last_sync_time: str | None = None
    last_health_time: str | None = None
    last_metrics_time: str | None = None
    last_team_time: str | None = None
    last_hunt_time: str | None = None


class SimulationEngine:
    """Owns the scheduler and every producer for one store."""

    def __init__(
        self,
        store: StateStore,
        rng: _random_mod.Random,
        loop: asyncio.AbstractEventLoop,
        notifications: NotificationDispatcher | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.rng = rng
        self.notifications = notifications
        self._now = now

        self.scheduler = Scheduler(loop)
        self.detector = ChangeDetector()
        self.config = SimulationConfig().validate()
        self.health = HealthStateMachine(
            self.config.outage_chance, self.config.recovery_chance, rng
        )
        self.sync_monitor = SyncMonitor(rng)
        self.metrics_history = MetricsHistory()
        self.alert_generator = AlertGenerator(rng)
        self._hunt_ids = IdFactory("HR", rng)
        self.stats = UpdateStats()
        self._unsubscribe: Callable[[], None] | None = None
        self.events_detected = 0

    # ── lifecycle ────────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self.scheduler.running

    def start(self, config: SimulationConfig | None = None) -> None:
        """Validate *config* and (re)start every enabled producer.

        Raises:
            ConfigError: If the configuration is invalid; nothing that was
                already running is touched in that case.
        """
        cfg = (config or SimulationConfig()).validate()
        self.stop()

        self.config = cfg
        self.health = HealthStateMachine(cfg.outage_chance, cfg.recovery_chance, self.rng)
        if self.notifications is not None:
            self.notifications.configure(cfg.notifications)
        self.detector.prime(self.store.snapshot())
        self._unsubscribe = self.store.subscribe(self._on_write)

        tasks = self._build_tasks(cfg)
        self.scheduler.start(tasks)
        log.info("Simulation started with %d producer(s)", len(tasks))

    def stop(self) -> None:
        """Cancel all producers.  Idempotent."""
        self.scheduler.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            self.detector.reset()

    def _build_tasks(self, cfg: SimulationConfig) -> list[PeriodicTask]:
        ticks: dict[str, Callable[[], object]] = {
            "alerts": self.simulate_alerts,
            "sync": self.update_sync_times,
            "health": self.update_health_status,
            "metrics": self.update_metrics,
            "team": self.update_team_status,
            "hunts": self.generate_hunt_results,
        }
        tasks = [
            PeriodicTask(name, cfg.producers[name].interval_ms / 1000.0, tick)
            for name, tick in ticks.items()
            if cfg.producers[name].enabled
        ]
        if cfg.auto_escalate:
            # ticks at half the threshold
            tasks.insert(1, PeriodicTask(
                "escalation", cfg.escalation_interval_ms / 2000.0, self.escalate_alerts
            ))
        return tasks

    def _on_write(self, snapshot: StateSnapshot) -> None:
        events = self.detector.diff(snapshot)
        self.events_detected += len(events)
        if events and self.notifications is not None:
            self.notifications.dispatch_all(events)

    # ── producers ────────────────────────────────────────────────────────
    # Each producer builds its whole tick first and commits it with one
    # ``apply_all``; a tick that fails leaves the store untouched.

    def simulate_alerts(self) -> list[Alert]:
        now = self._now()
        batch = self.alert_generator.generate_batch(
            self.config.severity_weights, self.config.max_alerts_per_interval, now
        )
        metrics = self.store.snapshot().metrics
        updates: list[StateUpdate] = [AddAlert(alert) for alert in batch]
        updates.append(SetMetrics(dataclasses.replace(
            metrics, total_alerts=metrics.total_alerts + len(batch)
        )))
        self.store.apply_all(updates)
        self.stats.alerts_generated += len(batch)
        self.stats.last_alert_time = format_ts(now)
        log.debug("Generated %d alert(s)", len(batch))
        return batch

    def escalate_alerts(self) -> list[Alert]:
        if not self.config.auto_escalate:
            return []
        now = self._now()
        escalated = escalate(self.store.snapshot().alerts, now,
                             self.config.escalation_interval_ms)
        if escalated:
            self.store.apply_all([
                UpdateAlert(a.id, {"status": a.status, "ai_analysis": a.ai_analysis})
                for a in escalated
            ])
            self.stats.alerts_escalated += len(escalated)
            self.stats.last_escalation_time = format_ts(now)
        return escalated

    def update_sync_times(self) -> list[SyncEvent]:
        now = self._now()
        events = self.sync_monitor.update_sync_times(self.store.snapshot().integrations, now)
        self._record_syncs(events)
        if events:
            self.stats.last_sync_time = format_ts(now)
        return events

    def force_sync_all(self) -> list[SyncEvent]:
        events = force_sync_all(self.store.snapshot().integrations, self._now())
        self._record_syncs(events)
        return events

    def _record_syncs(self, events: list[SyncEvent]) -> None:
        if not events:
            return
        updates: list[StateUpdate] = []
        for event in events:
            updates.append(UpdateIntegration(event.integration_name,
                                             {"last_sync": event.sync_time}))
            updates.append(AddSyncEvent(event))
        self.store.apply_all(updates)
        self.stats.sync_updates += len(events)

    def update_health_status(self) -> int:
        """One health check over every integration; returns how many changed."""
        integrations = self.store.snapshot().integrations
        transitions = []
        for integ in integrations:
            after = self.health.tick(integ)
            if after is not integ:
                transitions.append((integ, after))
        if not transitions:
            return 0

        self.store.apply_all([
            UpdateIntegration(after.name, {
                "status": after.status, "health": after.health, "last_sync": after.last_sync,
            })
            for _, after in transitions
        ])
        for before, after in transitions:
            self.sync_monitor.record_transition(before, after)
        self.stats.health_changes += len(transitions)
        self.stats.last_health_time = format_ts(self._now())
        if self.notifications is not None:
            self.notifications.check_system_health(self.store.snapshot().integrations)
        return len(transitions)

    def update_metrics(self) -> Metrics:
        current = self.store.snapshot().metrics
        updated = drift(
            current,
            self.config.variation_intensity,
            self.rng,
            previous=self.metrics_history.latest(),
            enable_trends=self.config.enable_trends,
        )
        self.store.set_metrics(updated)
        now = format_ts(self._now())
        self.metrics_history.append(updated, now)
        self.stats.metrics_updates += 1
        self.stats.last_metrics_time = now
        return updated

    def update_team_status(self) -> int:
        updated = drift_team(self.store.snapshot().team, self.rng)
        if updated:
            self.store.apply_all([
                UpdateTeamMember(m.name, {"status": m.status, "active_alerts": m.active_alerts})
                for m in updated
            ])
        self.stats.team_updates += len(updated)
        self.stats.last_team_time = format_ts(self._now())
        return len(updated)

    def generate_hunt_results(self) -> HuntResult:
        now = self._now()
        result = generate_hunt_result(self.rng, now, self._hunt_ids)
        self.store.add_hunt_result(result)
        self.stats.hunt_results += 1
        self.stats.last_hunt_time = format_ts(now)
        return result

    def run_hunt(self, query: str) -> HuntExecution:
        """Run an ad-hoc hunt query; results land in the store's hunt history."""
        self.store.set_loading("hunts", True)
        execution = run_hunt_query(query, self.rng, self._now(), self._hunt_ids)
        updates: list[StateUpdate] = [AddHuntResult(r) for r in execution.results]
        updates += [SetLoading("hunts", False), SetError("hunts", execution.error or None)]
        self.store.apply_all(updates)
        self.stats.hunt_results += len(execution.results)
        return execution

    # ── statistics ───────────────────────────────────────────────────────

    def reset_stats(self) -> None:
        self.stats = UpdateStats()
        self.sync_monitor.reset()
        self.metrics_history.clear()

    def integration_stats(self) -> IntegrationStats:
        return integration_stats(self.store.snapshot().integrations, self.sync_monitor.counters)

    def metrics_stats(self) -> MetricsStats:
        return self.metrics_history.stats(self.store.snapshot().metrics)

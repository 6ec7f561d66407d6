"""StateStore -- the single owner of the canonical SOC collections."""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from src.contracts import Alert, HuntResult, Integration, Metrics, SyncEvent, TeamMember
from src.store.state import (
    AddAlert,
    AddHuntResult,
    AddSyncEvent,
    SetAlerts,
    SetError,
    SetIntegrations,
    SetLoading,
    SetMetrics,
    SetTeam,
    StateSnapshot,
    StateUpdate,
    UpdateAlert,
    UpdateIntegration,
    UpdateTeamMember,
    reduce,
)

log = logging.getLogger(__name__)

Listener = Callable[[StateSnapshot], None]


class StateStore:
    """Holds the current snapshot and applies writes in atomic batches.

    Readers get deep copies from :meth:`snapshot`, so nothing outside the
    store can mutate canonical state.  Writes are serialised by a
    re-entrant lock (listeners may write back from inside a notification).
    """

    def __init__(self, initial: StateSnapshot | None = None) -> None:
        self._state = initial if initial is not None else StateSnapshot()
        self._listeners: list[Listener] = []
        self._lock = threading.RLock()
        self.write_count = 0

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return copy.deepcopy(self._state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def apply(self, update: StateUpdate) -> StateSnapshot:
        return self.apply_all([update])

    def apply_all(self, updates: Iterable[StateUpdate]) -> StateSnapshot:
        """Apply *updates* as one write: every update lands, or none does.

        Listeners are notified once with the final snapshot.  If an update
        fails to reduce or a listener raises, the previous state is restored
        and the exception propagates.
        """
        updates = list(updates)
        with self._lock:
            before = self._state
            state = before
            for update in updates:
                state = reduce(state, update)
            self._state = state
            snap = copy.deepcopy(state)
            try:
                for listener in list(self._listeners):
                    listener(snap)
            except Exception:
                self._state = before
                log.warning("Listener failed; rolled back %d update(s)", len(updates))
                raise
            self.write_count += 1
            log.debug("Applied %s (write #%d)",
                      ", ".join(type(u).__name__ for u in updates), self.write_count)
            return snap

    # ── mutation channel ─────────────────────────────────────────────────

    def set_alerts(self, alerts: Iterable[Alert]) -> StateSnapshot:
        return self.apply(SetAlerts(tuple(alerts)))

    def add_alert(self, alert: Alert) -> StateSnapshot:
        return self.apply(AddAlert(alert))

    def update_alert(self, alert_id: str, **changes: Any) -> StateSnapshot:
        return self.apply(UpdateAlert(alert_id, changes))

    def set_integrations(self, integrations: Iterable[Integration]) -> StateSnapshot:
        return self.apply(SetIntegrations(tuple(integrations)))

    def update_integration(self, name: str, **changes: Any) -> StateSnapshot:
        return self.apply(UpdateIntegration(name, changes))

    def set_team(self, team: Iterable[TeamMember]) -> StateSnapshot:
        return self.apply(SetTeam(tuple(team)))

    def update_team_member(self, name: str, **changes: Any) -> StateSnapshot:
        return self.apply(UpdateTeamMember(name, changes))

    def set_metrics(self, metrics: Metrics) -> StateSnapshot:
        return self.apply(SetMetrics(metrics))

    def set_loading(self, key: str, value: bool) -> StateSnapshot:
        return self.apply(SetLoading(key, value))

    def set_error(self, key: str, message: str | None) -> StateSnapshot:
        return self.apply(SetError(key, message))

    def add_hunt_result(self, result: HuntResult) -> StateSnapshot:
        return self.apply(AddHuntResult(result))

    def add_sync_event(self, event: SyncEvent) -> StateSnapshot:
        return self.apply(AddSyncEvent(event))

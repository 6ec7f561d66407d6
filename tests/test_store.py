"""Tests for src.store: reducer, StateStore and seed-state builder."""

from __future__ import annotations

from datetime import datetime

import pytest

from src.contracts import (
    AlertStatus,
    HuntResult,
    IntegrationHealth,
    IntegrationStatus,
    SyncEvent,
    TeamMemberStatus,
)
from src.store.seed_state import build_initial_state
from src.store.state import (
    SYNC_HISTORY_LIMIT,
    AddAlert,
    AddSyncEvent,
    SetAlerts,
    SetLoading,
    StateSnapshot,
    UpdateAlert,
    UpdateIntegration,
    merge_fields,
    reduce,
)
from src.store.state_store import StateStore
from tests.conftest import make_alert, make_integration, make_member, make_metrics, make_snapshot

# ═══════════════════════════════════════════════════════════════════════════
#  reduce()
# ═══════════════════════════════════════════════════════════════════════════


class TestReduce:
    def test_add_alert_prepends(self):
        s = make_snapshot(alerts=(make_alert(alert_id="A1"),))
        s2 = reduce(s, AddAlert(make_alert(alert_id="A2")))
        assert [a.id for a in s2.alerts] == ["A2", "A1"]

    def test_input_not_mutated(self):
        s = make_snapshot(alerts=(make_alert(alert_id="A1"),))
        reduce(s, UpdateAlert("A1", {"status": AlertStatus.RESOLVED}))
        assert s.alerts[0].status is AlertStatus.NEW

    def test_update_alert_merges_named_fields(self):
        s = make_snapshot(alerts=(make_alert(alert_id="A1"),))
        s2 = reduce(s, UpdateAlert("A1", {"status": "Active Threat"}))
        assert s2.alerts[0].status is AlertStatus.ACTIVE_THREAT
        assert s2.alerts[0].title == s.alerts[0].title

    def test_update_unknown_id_is_noop(self):
        s = make_snapshot(alerts=(make_alert(alert_id="A1"),))
        s2 = reduce(s, UpdateAlert("missing", {"status": "Resolved"}))
        assert s2.alerts == s.alerts

    def test_update_unknown_field_raises(self):
        s = make_snapshot(alerts=(make_alert(alert_id="A1"),))
        with pytest.raises(ValueError, match="no field"):
            reduce(s, UpdateAlert("A1", {"colour": "red"}))

    def test_update_integration_coerces_enums(self):
        s = make_snapshot(integrations=(make_integration(name="X"),))
        s2 = reduce(s, UpdateIntegration("X", {"status": "Degraded", "health": "Warning"}))
        assert s2.integrations[0].status is IntegrationStatus.DEGRADED
        assert s2.integrations[0].health is IntegrationHealth.WARNING

    def test_set_clears_loading_and_error(self):
        s = StateSnapshot(loading={"alerts": True}, errors={"alerts": "boom"})
        s2 = reduce(s, SetAlerts((make_alert(),)))
        assert s2.loading["alerts"] is False
        assert s2.errors["alerts"] is None

    def test_set_loading(self):
        s2 = reduce(StateSnapshot(), SetLoading("hunts", True))
        assert s2.loading == {"hunts": True}

    def test_sync_history_bounded(self):
        s = StateSnapshot()
        for i in range(SYNC_HISTORY_LIMIT + 5):
            ev = SyncEvent(f"I{i}", "2026-02-26T10:00:00Z", "Just now",
                           IntegrationStatus.CONNECTED, IntegrationHealth.HEALTHY)
            s = reduce(s, AddSyncEvent(ev))
        assert len(s.sync_history) == SYNC_HISTORY_LIMIT
        assert s.sync_history[-1].integration_name == f"I{SYNC_HISTORY_LIMIT + 4}"

    def test_unsupported_update_raises(self):
        with pytest.raises(TypeError):
            reduce(StateSnapshot(), object())


class TestMergeFields:
    def test_invalid_enum_value(self):
        with pytest.raises(ValueError):
            merge_fields(make_member(), {"status": "Sleeping"})


# ═══════════════════════════════════════════════════════════════════════════
#  StateStore
# ═══════════════════════════════════════════════════════════════════════════


class TestStateStore:
    def test_snapshot_is_a_copy(self):
        store = StateStore(make_snapshot(alerts=(make_alert(alert_id="A1"),)))
        snap = store.snapshot()
        snap.alerts[0].status = AlertStatus.RESOLVED
        assert store.snapshot().alerts[0].status is AlertStatus.NEW

    def test_listener_receives_new_snapshot(self):
        store = StateStore()
        seen = []
        store.subscribe(seen.append)
        store.add_alert(make_alert(alert_id="A1"))
        assert len(seen) == 1
        assert seen[0].alerts[0].id == "A1"

    def test_unsubscribe(self):
        store = StateStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        store.add_alert(make_alert())
        assert seen == []

    def test_write_count(self):
        store = StateStore()
        store.set_metrics(make_metrics())
        store.set_loading("metrics", True)
        assert store.write_count == 2

    def test_convenience_writers(self):
        store = StateStore(make_snapshot(
            integrations=(make_integration(name="X"),),
            team=(make_member(name="Sam"),),
        ))
        store.update_integration("X", last_sync="2 minutes ago")
        store.update_team_member("Sam", status=TeamMemberStatus.AWAY, active_alerts=0)
        store.add_hunt_result(HuntResult("H1", "t", "d", 80, "2026-02-26T10:00:00Z"))
        store.set_error("hunts", "failed")
        snap = store.snapshot()
        assert snap.integration("X").last_sync == "2 minutes ago"
        assert snap.member("Sam").status is TeamMemberStatus.AWAY
        assert snap.hunt_results[0].id == "H1"
        assert snap.errors["hunts"] == "failed"

    def test_apply_all_notifies_once(self):
        store = StateStore()
        seen = []
        store.subscribe(seen.append)
        store.apply_all([AddAlert(make_alert(alert_id="A1")),
                         AddAlert(make_alert(alert_id="A2")),
                         SetLoading("alerts", True)])
        assert len(seen) == 1
        assert [a.id for a in seen[0].alerts] == ["A2", "A1"]
        assert store.write_count == 1

    def test_apply_all_reduce_failure_keeps_state(self):
        store = StateStore(make_snapshot(alerts=(make_alert(alert_id="A1"),)))
        seen = []
        store.subscribe(seen.append)
        with pytest.raises(ValueError, match="no field"):
            store.apply_all([AddAlert(make_alert(alert_id="A2")),
                             UpdateAlert("A1", {"colour": "red"})])
        assert [a.id for a in store.snapshot().alerts] == ["A1"]
        assert seen == []
        assert store.write_count == 0

    def test_failing_listener_rolls_back(self):
        store = StateStore(make_snapshot(alerts=(make_alert(alert_id="A1"),)))

        def explode(snap):
            raise RuntimeError("listener down")

        store.subscribe(explode)
        with pytest.raises(RuntimeError):
            store.apply_all([AddAlert(make_alert(alert_id="A2")),
                             UpdateAlert("A1", {"status": "Resolved"})])
        snap = store.snapshot()
        assert [a.id for a in snap.alerts] == ["A1"]
        assert snap.alerts[0].status is AlertStatus.NEW
        assert store.write_count == 0


# ═══════════════════════════════════════════════════════════════════════════
#  build_initial_state()
# ═══════════════════════════════════════════════════════════════════════════


class TestSeedState:
    def test_health_derived_from_status(self):
        snap = build_initial_state({
            "integrations": [{"name": "Splunk", "status": "Disconnected"}],
        })
        assert snap.integrations[0].health is IntegrationHealth.ERROR

    def test_explicit_health_kept(self):
        snap = build_initial_state({
            "integrations": [{"name": "Splunk", "status": "Connected", "health": "Warning"}],
        })
        assert snap.integrations[0].health is IntegrationHealth.WARNING

    def test_alerts_team_metrics(self):
        snap = build_initial_state({
            "team": [{"name": "Sam", "role": "Analyst", "status": "Away", "active_alerts": -3}],
            "alerts": [{"id": "A1", "severity": "Critical", "risk_score": 14}],
            "metrics": {"total_alerts": 9, "bogus": 1},
        })
        assert snap.team[0].active_alerts == 0
        assert snap.alerts[0].risk_score == 10.0
        assert snap.metrics.total_alerts == 9

    def test_datetime_timestamp_normalised(self):
        snap = build_initial_state({
            "alerts": [{"id": "A1", "timestamp": datetime(2026, 1, 15, 9, 12)}],
        })
        assert snap.alerts[0].timestamp == "2026-01-15T09:12:00Z"

    def test_empty(self):
        snap = build_initial_state({})
        assert snap.alerts == ()
        assert snap.integrations == ()

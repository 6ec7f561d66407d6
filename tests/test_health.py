"""Tests for src.simulation.health."""

from __future__ import annotations

import random

import pytest

from src.contracts import STATUS_HEALTH, IntegrationHealth, IntegrationStatus
from src.simulation.generators import SYNC_TIME_BANDS
from src.simulation.health import (
    HealthStateMachine,
    SyncCounters,
    SyncMonitor,
    force_sync_all,
    integration_stats,
)
from tests.conftest import NOW, make_integration


class FixedRandom(random.Random):
    """``random()`` replays *values*; integer draws come from a seeded Random."""

    def __init__(self, *values: float) -> None:
        super().__init__(0)
        self._values = list(values)
        self._bits = random.Random(0)

    def random(self) -> float:
        return self._values.pop(0)

    # defining getrandbits keeps randint/choice off the replayed random()
    def getrandbits(self, k: int) -> int:
        return self._bits.getrandbits(k)


# ═══════════════════════════════════════════════════════════════════════════
#  State machine
# ═══════════════════════════════════════════════════════════════════════════


class TestTransitions:
    # outage 0.1, recovery 0.3
    @pytest.mark.parametrize(
        "status, draw, expected",
        [
            (IntegrationStatus.CONNECTED, 0.01, IntegrationStatus.DEGRADED),
            (IntegrationStatus.CONNECTED, 0.10, IntegrationStatus.DISCONNECTED),
            (IntegrationStatus.CONNECTED, 0.16, None),
            (IntegrationStatus.DEGRADED, 0.20, IntegrationStatus.CONNECTED),
            (IntegrationStatus.DEGRADED, 0.30, IntegrationStatus.DISCONNECTED),
            (IntegrationStatus.DEGRADED, 0.45, None),
            (IntegrationStatus.DISCONNECTED, 0.10, IntegrationStatus.DEGRADED),
            (IntegrationStatus.DISCONNECTED, 0.16, None),
        ],
    )
    def test_branch_for_draw(self, status, draw, expected):
        sm = HealthStateMachine(0.1, 0.3, FixedRandom(draw))
        assert sm.next_status(status) is expected

    def test_disconnected_never_jumps_to_connected(self):
        sm = HealthStateMachine(0.5, 1.0, random.Random(3))
        seen = {sm.next_status(IntegrationStatus.DISCONNECTED) for _ in range(2000)}
        assert seen == {IntegrationStatus.DEGRADED, None}

    def test_zero_chances_never_move(self, rng):
        sm = HealthStateMachine(0.0, 0.0, rng)
        for status in IntegrationStatus:
            assert all(sm.next_status(status) is None for _ in range(200))


class TestTick:
    def test_unchanged_returns_same_object(self):
        sm = HealthStateMachine(0.1, 0.3, FixedRandom(0.99))
        integ = make_integration()
        assert sm.tick(integ) is integ

    def test_change_writes_correlated_health_and_sync(self):
        sm = HealthStateMachine(0.1, 0.3, FixedRandom(0.01))
        integ = make_integration()
        after = sm.tick(integ)
        assert after is not integ
        assert after.status is IntegrationStatus.DEGRADED
        assert after.health is IntegrationHealth.WARNING
        assert after.last_sync in SYNC_TIME_BANDS[IntegrationStatus.DEGRADED]
        assert integ.status is IntegrationStatus.CONNECTED

    def test_status_and_health_stay_correlated(self):
        sm = HealthStateMachine(0.3, 0.6, random.Random(11))
        integ = make_integration()
        statuses = set()
        for _ in range(5000):
            integ = sm.tick(integ)
            assert integ.health is STATUS_HEALTH[integ.status]
            statuses.add(integ.status)
        assert statuses == set(IntegrationStatus)


# ═══════════════════════════════════════════════════════════════════════════
#  Sync refresh
# ═══════════════════════════════════════════════════════════════════════════


class TestSyncMonitor:
    def test_events_use_status_bands(self, rng):
        monitor = SyncMonitor(rng)
        integs = [
            make_integration(name=f"I{i}", status=s)
            for i, s in enumerate(list(IntegrationStatus) * 20)
        ]
        for _ in range(20):
            for ev in monitor.update_sync_times(integs, NOW):
                assert ev.sync_time in SYNC_TIME_BANDS[ev.status]
                assert ev.timestamp == "2026-02-26T10:00:00Z"

    def test_connected_refreshes_more_often(self, rng):
        monitor = SyncMonitor(rng)
        integs = [make_integration(name="up"),
                  make_integration(name="down", status=IntegrationStatus.DISCONNECTED)]
        names = [e.integration_name for _ in range(2000)
                 for e in monitor.update_sync_times(integs, NOW)]
        assert names.count("up") > 10 * names.count("down")

    def test_counters(self):
        monitor = SyncMonitor(FixedRandom(0.1, 0.9))
        integs = [make_integration(name="a"), make_integration(name="b")]
        events = monitor.update_sync_times(integs, NOW)
        assert [e.integration_name for e in events] == ["a"]
        assert monitor.counters.total_syncs == 1
        assert monitor.counters.successful_syncs == 1
        assert monitor.counters.last_sync_time == "2026-02-26T10:00:00Z"

    def test_record_transition_counts_drops_only(self, rng):
        monitor = SyncMonitor(rng)
        up = make_integration()
        down = make_integration(status=IntegrationStatus.DISCONNECTED)
        monitor.record_transition(up, down)
        monitor.record_transition(down, up)
        assert monitor.counters.failed_syncs == 1
        monitor.reset()
        assert monitor.counters == SyncCounters()


class TestForceSync:
    def test_skips_disconnected(self):
        integs = [
            make_integration(name="a"),
            make_integration(name="b", status=IntegrationStatus.DEGRADED),
            make_integration(name="c", status=IntegrationStatus.DISCONNECTED),
        ]
        events = force_sync_all(integs, NOW)
        assert [e.integration_name for e in events] == ["a", "b"]
        assert {e.sync_time for e in events} == {"Just now"}


# ═══════════════════════════════════════════════════════════════════════════
#  Statistics
# ═══════════════════════════════════════════════════════════════════════════


class TestIntegrationStats:
    def test_empty(self):
        stats = integration_stats([])
        assert stats.total_integrations == 0
        assert stats.uptime_pct == 0.0
        assert stats.health_score_pct == 0.0
        assert stats.success_rate_pct == 100.0

    def test_breakdowns_and_percentages(self):
        integs = [
            make_integration(name="a"),
            make_integration(name="b"),
            make_integration(name="c", status=IntegrationStatus.DEGRADED),
        ]
        counters = SyncCounters(total_syncs=3, successful_syncs=2, failed_syncs=1)
        stats = integration_stats(integs, counters)
        assert stats.status_breakdown == {"Connected": 2, "Degraded": 1, "Disconnected": 0}
        assert stats.health_breakdown["Warning"] == 1
        assert stats.uptime_pct == 66.7
        assert stats.health_score_pct == 66.7
        assert stats.success_rate_pct == 66.7
        assert stats.failed_syncs == 1

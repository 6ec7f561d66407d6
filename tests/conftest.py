"""Shared fixtures for the SOC live simulation tests."""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from src.contracts import (
    Alert,
    AlertStatus,
    Integration,
    IntegrationHealth,
    IntegrationStatus,
    Metrics,
    Severity,
    TeamMember,
    TeamMemberStatus,
)
from src.store.state import StateSnapshot
from src.store.state_store import StateStore

NOW = datetime(2026, 2, 26, 10, 0, 0, tzinfo=timezone.utc)

# ── Helpers: records with sensible defaults ─────────────────────────────


def make_alert(
    *,
    alert_id: str = "ALT-TEST-0001",
    title: str = "Failed Authentication Attempts",
    severity: Severity | str = Severity.HIGH,
    status: AlertStatus | str = AlertStatus.NEW,
    source: str = "Active Directory",
    timestamp: str = "2026-02-26T10:00:00Z",
    description: str = "test alert",
    ai_analysis: str = "Potential threat detected - investigating correlations",
    risk_score: float = 7.0,
) -> Alert:
    return Alert(
        id=alert_id,
        title=title,
        severity=Severity(severity),
        status=AlertStatus(status),
        source=source,
        timestamp=timestamp,
        description=description,
        ai_analysis=ai_analysis,
        risk_score=risk_score,
        artifacts=["Source IP: 203.45.67.89"],
        recommended_actions=["Review authentication logs"],
    )


def make_integration(
    *,
    name: str = "Microsoft Sentinel",
    status: IntegrationStatus | str = IntegrationStatus.CONNECTED,
    health: IntegrationHealth | str | None = None,
    last_sync: str = "Just now",
) -> Integration:
    status = IntegrationStatus(status)
    if health is None:
        health = {
            IntegrationStatus.CONNECTED: IntegrationHealth.HEALTHY,
            IntegrationStatus.DEGRADED: IntegrationHealth.WARNING,
            IntegrationStatus.DISCONNECTED: IntegrationHealth.ERROR,
        }[status]
    return Integration(name=name, status=status, health=IntegrationHealth(health),
                       last_sync=last_sync)


def make_member(
    *,
    name: str = "Sarah Chen",
    role: str = "SOC Manager",
    status: TeamMemberStatus | str = TeamMemberStatus.ONLINE,
    active_alerts: int = 2,
) -> TeamMember:
    return TeamMember(name=name, role=role, status=TeamMemberStatus(status),
                      active_alerts=active_alerts)


def make_metrics(**overrides) -> Metrics:
    base = {
        "total_alerts": 247,
        "active_investigations": 18,
        "resolved_incidents": 156,
        "mttr": "12.5 min",
        "accuracy": "94.2%",
        "false_positives": "5.8%",
    }
    base.update(overrides)
    return Metrics(**base)


def make_snapshot(
    *,
    alerts: tuple[Alert, ...] = (),
    integrations: tuple[Integration, ...] = (),
    team: tuple[TeamMember, ...] = (),
    metrics: Metrics | None = None,
) -> StateSnapshot:
    return StateSnapshot(
        alerts=alerts,
        integrations=integrations,
        team=team,
        metrics=metrics or make_metrics(),
    )


# ── Timestamp helpers ────────────────────────────────────────────────────


def ts_offset(base: datetime = NOW, seconds: int = 0) -> str:
    """Return an ISO-8601 timestamp offset from *base* by *seconds*."""
    return (base + timedelta(seconds=seconds)).strftime("%Y-%m-%dT%H:%M:%SZ")


# ── Fakes ────────────────────────────────────────────────────────────────


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordedTimer:
    def __init__(self, delay: float, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


class RecordingCallLater:
    """Stands in for ``loop.call_later``; timers fire only when told to."""

    def __init__(self) -> None:
        self.timers: list[RecordedTimer] = []

    def __call__(self, delay: float, callback) -> RecordedTimer:
        timer = RecordedTimer(delay, callback)
        self.timers.append(timer)
        return timer


# ── Fixtures ─────────────────────────────────────────────────────────────


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def call_later() -> RecordingCallLater:
    return RecordingCallLater()


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def seeded_store() -> StateStore:
    """Store with three integrations, two analysts and one alert."""
    return StateStore(make_snapshot(
        alerts=(make_alert(),),
        integrations=(
            make_integration(name="Microsoft Sentinel"),
            make_integration(name="CrowdStrike Falcon"),
            make_integration(name="AWS GuardDuty", status=IntegrationStatus.DEGRADED),
        ),
        team=(
            make_member(name="Sarah Chen"),
            make_member(name="Mike Rodriguez", status=TeamMemberStatus.OFFLINE),
        ),
    ))

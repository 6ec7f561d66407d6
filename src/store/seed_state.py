"""Initial state model -- builds a snapshot from ``seed_state.yaml``."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any

from src.contracts import (
    STATUS_HEALTH,
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
from src.shared.timeutil import format_ts
from src.store.state import StateSnapshot

log = logging.getLogger(__name__)

_METRIC_FIELDS = {f.name for f in dataclasses.fields(Metrics)}


def _integration(raw: dict[str, Any]) -> Integration:
    status = IntegrationStatus(raw.get("status", "Connected"))
    health = raw.get("health")
    return Integration(
        name=raw["name"],
        status=status,
        health=IntegrationHealth(health) if health else STATUS_HEALTH[status],
        last_sync=str(raw.get("last_sync", "Just now")),
    )


def _member(raw: dict[str, Any]) -> TeamMember:
    return TeamMember(
        name=raw["name"],
        role=str(raw.get("role", "SOC Analyst")),
        status=TeamMemberStatus(raw.get("status", "Online")),
        active_alerts=max(0, int(raw.get("active_alerts", 0))),
    )


def _timestamp(value: Any) -> str:
    # unquoted ISO values arrive from yaml.safe_load as datetime objects
    if isinstance(value, datetime):
        return format_ts(value if value.tzinfo else value.replace(tzinfo=timezone.utc))
    return str(value)


def _alert(raw: dict[str, Any]) -> Alert:
    return Alert(
        id=raw["id"],
        title=raw.get("title", ""),
        severity=Severity(raw.get("severity", "Medium")),
        status=AlertStatus(raw.get("status", "New")),
        source=raw.get("source", ""),
        timestamp=_timestamp(raw.get("timestamp", "")),
        description=raw.get("description", ""),
        ai_analysis=raw.get("ai_analysis", ""),
        risk_score=min(10.0, max(0.0, float(raw.get("risk_score", 0.0)))),
        artifacts=list(raw.get("artifacts", [])),
        recommended_actions=list(raw.get("recommended_actions", [])),
    )


def build_initial_state(seed_cfg: dict[str, Any]) -> StateSnapshot:
    """Parse the ``integrations`` / ``team`` / ``metrics`` / ``alerts`` sections.

    A missing ``health`` is derived from ``status``; an explicit one is
    kept as given (seed data may be deliberately inconsistent).
    """
    integrations = tuple(_integration(r) for r in seed_cfg.get("integrations", []))
    team = tuple(_member(r) for r in seed_cfg.get("team", []))
    alerts = tuple(_alert(r) for r in seed_cfg.get("alerts", []))

    raw_metrics = seed_cfg.get("metrics", {}) or {}
    unknown = set(raw_metrics) - _METRIC_FIELDS
    if unknown:
        log.warning("Ignoring unknown metrics keys: %s", ", ".join(sorted(unknown)))
    metrics = Metrics(**{k: v for k, v in raw_metrics.items() if k in _METRIC_FIELDS})

    log.info(
        "Seed state built: %d alerts, %d integrations, %d team members",
        len(alerts), len(integrations), len(team),
    )
    return StateSnapshot(alerts=alerts, integrations=integrations, team=team, metrics=metrics)

"""Immutable SOC state snapshot and the pure reducer that evolves it.

Every write goes through one of the update records below and
:func:`reduce`, which never mutates its input:

  Set*     -- replace a whole collection; clears its loading flag and error
  Add*     -- prepend (alerts) or append (hunts, sync history)
  Update*  -- merge named fields into one record keyed by id / name;
             an unknown key is a no-op, an unknown field is a ValueError
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from src.contracts import (
    Alert,
    AlertStatus,
    HuntResult,
    Integration,
    IntegrationHealth,
    IntegrationStatus,
    Metrics,
    Severity,
    SyncEvent,
    TeamMember,
    TeamMemberStatus,
)

log = logging.getLogger(__name__)

SYNC_HISTORY_LIMIT = 50
HUNT_RESULTS_LIMIT = 200


@dataclass(frozen=True, slots=True)
class StateSnapshot:
    alerts: tuple[Alert, ...] = ()  # newest first
    integrations: tuple[Integration, ...] = ()
    team: tuple[TeamMember, ...] = ()
    metrics: Metrics = field(default_factory=Metrics)
    hunt_results: tuple[HuntResult, ...] = ()
    sync_history: tuple[SyncEvent, ...] = ()
    loading: dict[str, bool] = field(default_factory=dict)
    errors: dict[str, str | None] = field(default_factory=dict)

    def alert(self, alert_id: str) -> Alert | None:
        return next((a for a in self.alerts if a.id == alert_id), None)

    def integration(self, name: str) -> Integration | None:
        return next((i for i in self.integrations if i.name == name), None)

    def member(self, name: str) -> TeamMember | None:
        return next((m for m in self.team if m.name == name), None)


# ── update records ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class SetAlerts:
    alerts: tuple[Alert, ...]


@dataclass(frozen=True, slots=True)
class AddAlert:
    alert: Alert


@dataclass(frozen=True, slots=True)
class UpdateAlert:
    alert_id: str
    changes: dict[str, Any]


@dataclass(frozen=True, slots=True)
class SetIntegrations:
    integrations: tuple[Integration, ...]


@dataclass(frozen=True, slots=True)
class UpdateIntegration:
    name: str
    changes: dict[str, Any]


@dataclass(frozen=True, slots=True)
class SetTeam:
    team: tuple[TeamMember, ...]


@dataclass(frozen=True, slots=True)
class UpdateTeamMember:
    name: str
    changes: dict[str, Any]


@dataclass(frozen=True, slots=True)
class SetMetrics:
    metrics: Metrics


@dataclass(frozen=True, slots=True)
class SetLoading:
    key: str
    value: bool


@dataclass(frozen=True, slots=True)
class SetError:
    key: str
    message: str | None


@dataclass(frozen=True, slots=True)
class AddHuntResult:
    result: HuntResult


@dataclass(frozen=True, slots=True)
class AddSyncEvent:
    event: SyncEvent


StateUpdate = Union[
    SetAlerts,
    AddAlert,
    UpdateAlert,
    SetIntegrations,
    UpdateIntegration,
    SetTeam,
    UpdateTeamMember,
    SetMetrics,
    SetLoading,
    SetError,
    AddHuntResult,
    AddSyncEvent,
]


# ── field merging ────────────────────────────────────────────────────────

_ENUM_FIELDS: dict[type, dict[str, type]] = {
    Alert: {"severity": Severity, "status": AlertStatus},
    Integration: {"status": IntegrationStatus, "health": IntegrationHealth},
    TeamMember: {"status": TeamMemberStatus},
}


def merge_fields(record: Any, changes: dict[str, Any]) -> Any:
    """Return a copy of *record* with *changes* applied.

    Enum-typed fields accept their string values ("Degraded").

    Raises:
        ValueError: On a field the record does not have, or an invalid
            enum value.
    """
    rtype = type(record)
    known = {f.name for f in dataclasses.fields(rtype)}
    unknown = set(changes) - known
    if unknown:
        raise ValueError(f"{rtype.__name__} has no field(s): {', '.join(sorted(unknown))}")
    enums = _ENUM_FIELDS.get(rtype, {})
    coerced = {k: enums[k](v) if k in enums else v for k, v in changes.items()}
    return dataclasses.replace(record, **coerced)


def _merge_into(items: tuple[Any, ...], key_attr: str, key: str, changes: dict[str, Any],
                kind: str) -> tuple[Any, ...]:
    found = False
    merged: list[Any] = []
    for item in items:
        if getattr(item, key_attr) == key:
            merged.append(merge_fields(item, changes))
            found = True
        else:
            merged.append(item)
    if not found:
        log.debug("Update for unknown %s '%s' ignored", kind, key)
        return items
    return tuple(merged)


def _loaded(state: StateSnapshot, key: str) -> dict[str, Any]:
    return {
        "loading": {**state.loading, key: False},
        "errors": {**state.errors, key: None},
    }


# ── reducer ──────────────────────────────────────────────────────────────


def reduce(state: StateSnapshot, update: StateUpdate) -> StateSnapshot:
    """Apply one update and return the next snapshot."""
    replace = dataclasses.replace

    if isinstance(update, SetAlerts):
        return replace(state, alerts=tuple(update.alerts), **_loaded(state, "alerts"))
    if isinstance(update, AddAlert):
        return replace(state, alerts=(update.alert, *state.alerts))
    if isinstance(update, UpdateAlert):
        return replace(
            state, alerts=_merge_into(state.alerts, "id", update.alert_id, update.changes, "alert")
        )
    if isinstance(update, SetIntegrations):
        return replace(
            state, integrations=tuple(update.integrations), **_loaded(state, "integrations")
        )
    if isinstance(update, UpdateIntegration):
        return replace(
            state,
            integrations=_merge_into(
                state.integrations, "name", update.name, update.changes, "integration"
            ),
        )
    if isinstance(update, SetTeam):
        return replace(state, team=tuple(update.team), **_loaded(state, "team"))
    if isinstance(update, UpdateTeamMember):
        return replace(
            state, team=_merge_into(state.team, "name", update.name, update.changes, "member")
        )
    if isinstance(update, SetMetrics):
        return replace(state, metrics=update.metrics, **_loaded(state, "metrics"))
    if isinstance(update, SetLoading):
        return replace(state, loading={**state.loading, update.key: update.value})
    if isinstance(update, SetError):
        return replace(state, errors={**state.errors, update.key: update.message})
    if isinstance(update, AddHuntResult):
        results = (*state.hunt_results, update.result)[-HUNT_RESULTS_LIMIT:]
        return replace(state, hunt_results=results)
    if isinstance(update, AddSyncEvent):
        history = (*state.sync_history, update.event)[-SYNC_HISTORY_LIMIT:]
        return replace(state, sync_history=history)
    raise TypeError(f"Unsupported state update: {type(update).__name__}")

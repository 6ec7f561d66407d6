"""Alert, hunt and sync records produced by the simulation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.contracts.codec import to_compact_json, to_plain_dict
from src.contracts.enums import AlertStatus, IntegrationHealth, IntegrationStatus, Severity


@dataclass(slots=True)
class Alert:
    """A synthetic security alert."""

    id: str  # e.g. "ALT-7F3A-0001"
    title: str
    severity: Severity
    status: AlertStatus
    source: str
    timestamp: str  # ISO-8601 UTC
    description: str
    ai_analysis: str
    risk_score: float  # 0.0 to 10.0
    artifacts: list[str] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)

    def to_json(self) -> str:
        return to_compact_json(self)


@dataclass(slots=True)
class HuntResult:
    """One finding returned by a threat hunt."""

    id: str
    title: str
    description: str
    confidence: int  # 0 to 100
    timestamp: str
    severity: Severity | None = None
    artifacts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)

    def to_json(self) -> str:
        return to_compact_json(self)


@dataclass(slots=True)
class HuntExecution:
    """A single run of a hunt query.

    ``status`` is one of ``Running`` | ``Completed`` | ``Failed``.
    """

    id: str
    query_id: str
    query: str
    status: str
    start_time: str
    end_time: str = ""
    execution_time: float = 0.0  # seconds
    results: list[HuntResult] = field(default_factory=list)
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)


@dataclass(slots=True)
class SyncEvent:
    """Record of one integration sync refresh."""

    integration_name: str
    timestamp: str
    sync_time: str  # human readable, e.g. "30 seconds ago"
    status: IntegrationStatus
    health: IntegrationHealth

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)

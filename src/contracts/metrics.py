"""Dashboard metrics record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from src.contracts.codec import to_plain_dict


@dataclass(slots=True)
class Metrics:
    """Aggregate SOC counters plus their display strings.

    Counters are never negative.  ``mttr``, ``accuracy`` and
    ``false_positives`` are display strings ("12.5 min", "94.2%", "5.8%");
    every ``*_trend`` is a signed percentage string such as "+12.0%".
    """

    total_alerts: int = 0
    alerts_trend: str = "0%"
    active_investigations: int = 0
    investigations_trend: str = "0%"
    resolved_incidents: int = 0
    incidents_trend: str = "0%"
    mttr: str = "12.0 min"
    mttr_trend: str = "0%"
    accuracy: str = "94.2%"
    accuracy_trend: str = "0%"
    false_positives: str = "5.8%"
    false_positives_trend: str = "0%"

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)

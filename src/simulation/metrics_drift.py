"""Metrics drift -- bounded random walk over the SOC dashboard counters.

Per tick, each metric moves by a delta drawn uniformly from the range of
the configured intensity:

    counters   total_alerts, active_investigations  floor(delta), floor at 0
               resolved_incidents                   += max(0, floor(delta))
    rates      mttr            clamped to [3, 60] minutes
               accuracy        clamped to [85, 99.9] %
               false_positives clamped to [0.1, 20] %

Trends are the signed percentage change against the previous snapshot,
``"0%"`` when there is none (or when the previous value is zero).
"""

from __future__ import annotations

import dataclasses
import logging
import math
import random
import re
from collections import deque
from dataclasses import dataclass

import pandas as pd

from src.contracts import Metrics, VariationIntensity
from src.shared.timeutil import format_ts, utc_now

log = logging.getLogger(__name__)

# Fallbacks when a display string cannot be parsed
BASELINE_MTTR = 12.0
BASELINE_ACCURACY = 94.2
BASELINE_FALSE_POSITIVES = 5.8

MTTR_BOUNDS = (3.0, 60.0)
ACCURACY_BOUNDS = (85.0, 99.9)
FALSE_POSITIVE_BOUNDS = (0.1, 20.0)

HISTORY_LIMIT = 50
STATS_WINDOW = 10

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


@dataclass(frozen=True, slots=True)
class VariationRange:
    alerts: tuple[float, float]
    investigations: tuple[float, float]
    incidents: tuple[float, float]
    mttr: tuple[float, float]
    accuracy: tuple[float, float]
    false_positives: tuple[float, float]


VARIATION_RANGES: dict[VariationIntensity, VariationRange] = {
    VariationIntensity.LOW: VariationRange(
        alerts=(-1, 2), investigations=(-1, 1), incidents=(0, 1),
        mttr=(-0.5, 0.5), accuracy=(-0.1, 0.1), false_positives=(-0.05, 0.05),
    ),
    VariationIntensity.MEDIUM: VariationRange(
        alerts=(-2, 3), investigations=(-1, 2), incidents=(0, 2),
        mttr=(-1, 1), accuracy=(-0.25, 0.25), false_positives=(-0.15, 0.15),
    ),
    VariationIntensity.HIGH: VariationRange(
        alerts=(-3, 5), investigations=(-2, 3), incidents=(0, 3),
        mttr=(-2, 2), accuracy=(-0.5, 0.5), false_positives=(-0.3, 0.3),
    ),
}


# ── parsing / formatting ───────────────────────────────────────────────

def parse_numeric(text: str | None, default: float) -> float:
    """First number in *text* ("12.5 min" -> 12.5), else *default*."""
    if not text:
        return default
    m = _NUMBER_RE.search(str(text))
    if m is None:
        return default
    value = float(m.group(0))
    return value if math.isfinite(value) else default


def calculate_trend(current: float, previous: float) -> str:
    """Signed percent change, e.g. ``"+12.0%"``; ``"0%"`` when *previous* is 0."""
    if previous == 0:
        return "0%"
    change = (current - previous) / previous * 100
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.1f}%"


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    lo, hi = bounds
    return max(lo, min(hi, value))


def _rates(m: Metrics) -> tuple[float, float, float]:
    return (
        parse_numeric(m.mttr, BASELINE_MTTR),
        parse_numeric(m.accuracy, BASELINE_ACCURACY),
        parse_numeric(m.false_positives, BASELINE_FALSE_POSITIVES),
    )


# ── drift ───────────────────────────────────────────────────────────────

def drift(current: Metrics, intensity: VariationIntensity, rng: random.Random,
          previous: Metrics | None = None, enable_trends: bool = True) -> Metrics:
    """Return a new :class:`Metrics` one random-walk step away from *current*.

    With trends enabled, trend strings compare the new values against
    *previous*; without a previous snapshot they are ``"0%"``.  With trends
    disabled the current trend strings are carried over unchanged.
    """
    r = VARIATION_RANGES[intensity]
    mttr, accuracy, fp = _rates(current)

    total_alerts = max(0, current.total_alerts + math.floor(rng.uniform(*r.alerts)))
    investigations = max(
        0, current.active_investigations + math.floor(rng.uniform(*r.investigations))
    )
    resolved = max(0, current.resolved_incidents) + max(0, math.floor(rng.uniform(*r.incidents)))
    new_mttr = _clamp(mttr + rng.uniform(*r.mttr), MTTR_BOUNDS)
    new_accuracy = _clamp(accuracy + rng.uniform(*r.accuracy), ACCURACY_BOUNDS)
    new_fp = _clamp(fp + rng.uniform(*r.false_positives), FALSE_POSITIVE_BOUNDS)

    updated = dataclasses.replace(
        current,
        total_alerts=total_alerts,
        active_investigations=investigations,
        resolved_incidents=resolved,
        mttr=f"{new_mttr:.1f} min",
        accuracy=f"{new_accuracy:.1f}%",
        false_positives=f"{new_fp:.1f}%",
    )
    if not enable_trends:
        return updated

    if previous is None:
        trends = dict.fromkeys(
            ("alerts_trend", "investigations_trend", "incidents_trend",
             "mttr_trend", "accuracy_trend", "false_positives_trend"),
            "0%",
        )
    else:
        p_mttr, p_acc, p_fp = _rates(previous)
        trends = {
            "alerts_trend": calculate_trend(total_alerts, previous.total_alerts),
            "investigations_trend": calculate_trend(investigations,
                                                    previous.active_investigations),
            "incidents_trend": calculate_trend(resolved, previous.resolved_incidents),
            "mttr_trend": calculate_trend(new_mttr, p_mttr),
            "accuracy_trend": calculate_trend(new_accuracy, p_acc),
            "false_positives_trend": calculate_trend(new_fp, p_fp),
        }
    return dataclasses.replace(updated, **trends)


# ── history ─────────────────────────────────────────────────────────────

@dataclass(slots=True)
class MetricsStats:
    average_alerts: float
    average_investigations: float
    average_incidents: float
    average_mttr: float
    average_accuracy: float
    average_false_positives: float
    volatility: str  # low | medium | high


class MetricsHistory:
    """Bounded (timestamp, Metrics) history with summary statistics."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self._entries: deque[tuple[str, Metrics]] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, metrics: Metrics, timestamp: str | None = None) -> None:
        self._entries.append((timestamp or format_ts(utc_now()), metrics))

    def latest(self) -> Metrics | None:
        return self._entries[-1][1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def to_frame(self) -> pd.DataFrame:
        """One row per entry, rates parsed to floats."""
        rows = []
        for ts, m in self._entries:
            mttr, acc, fp = _rates(m)
            rows.append({
                "timestamp": ts,
                "total_alerts": m.total_alerts,
                "active_investigations": m.active_investigations,
                "resolved_incidents": m.resolved_incidents,
                "mttr": mttr,
                "accuracy": acc,
                "false_positives": fp,
            })
        df = pd.DataFrame(rows, columns=[
            "timestamp", "total_alerts", "active_investigations", "resolved_incidents",
            "mttr", "accuracy", "false_positives",
        ])
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, errors="coerce")
        return df

    def stats(self, current: Metrics | None = None) -> MetricsStats:
        """Averages over the last 10 entries plus alert-count volatility.

        With fewer than two entries the averages fall back to *current*
        (or the latest entry) and volatility is ``low``.
        """
        if len(self._entries) < 2:
            m = current or self.latest() or Metrics()
            mttr, acc, fp = _rates(m)
            return MetricsStats(
                float(m.total_alerts), float(m.active_investigations),
                float(m.resolved_incidents), mttr, acc, fp, "low",
            )

        recent = self.to_frame().tail(STATS_WINDOW)
        means = recent.mean(numeric_only=True)
        # population variance
        alert_variance = float(recent["total_alerts"].var(ddof=0))
        if alert_variance > 10:
            volatility = "high"
        elif alert_variance > 5:
            volatility = "medium"
        else:
            volatility = "low"
        return MetricsStats(
            average_alerts=float(means["total_alerts"]),
            average_investigations=float(means["active_investigations"]),
            average_incidents=float(means["resolved_incidents"]),
            average_mttr=float(means["mttr"]),
            average_accuracy=float(means["accuracy"]),
            average_false_positives=float(means["false_positives"]),
            volatility=volatility,
        )

"""Tests for src.simulation.metrics_drift."""

from __future__ import annotations

import random

import pytest

from src.contracts import Metrics, VariationIntensity
from src.simulation.metrics_drift import (
    ACCURACY_BOUNDS,
    FALSE_POSITIVE_BOUNDS,
    MTTR_BOUNDS,
    MetricsHistory,
    calculate_trend,
    drift,
    parse_numeric,
)
from tests.conftest import make_metrics

TREND_FIELDS = (
    "alerts_trend", "investigations_trend", "incidents_trend",
    "mttr_trend", "accuracy_trend", "false_positives_trend",
)


# ═══════════════════════════════════════════════════════════════════════════
#  Parsing helpers
# ═══════════════════════════════════════════════════════════════════════════


class TestParseNumeric:
    @pytest.mark.parametrize(
        "text, expected",
        [("12.5 min", 12.5), ("94.2%", 94.2), ("7", 7.0), ("-3.5%", -3.5)],
    )
    def test_parses_first_number(self, text, expected):
        assert parse_numeric(text, 0.0) == expected

    @pytest.mark.parametrize("text", ["", None, "n/a", "%"])
    def test_fallback(self, text):
        assert parse_numeric(text, 12.0) == 12.0


class TestCalculateTrend:
    def test_increase(self):
        assert calculate_trend(110, 100) == "+10.0%"

    def test_decrease(self):
        assert calculate_trend(90, 100) == "-10.0%"

    def test_unchanged_is_signed(self):
        assert calculate_trend(100, 100) == "+0.0%"

    def test_zero_previous(self):
        assert calculate_trend(5, 0) == "0%"


# ═══════════════════════════════════════════════════════════════════════════
#  Drift
# ═══════════════════════════════════════════════════════════════════════════


class TestDrift:
    @pytest.mark.parametrize("intensity", list(VariationIntensity))
    def test_bounds_hold_over_long_walk(self, intensity):
        rng = random.Random(1)
        m = make_metrics(total_alerts=0, active_investigations=0, resolved_incidents=0)
        previous = None
        for _ in range(10_000 if intensity is VariationIntensity.LOW else 2_000):
            nxt = drift(m, intensity, rng, previous)
            previous, m = m, nxt
            assert m.total_alerts >= 0
            assert m.active_investigations >= 0
            assert MTTR_BOUNDS[0] <= parse_numeric(m.mttr, -1) <= MTTR_BOUNDS[1]
            assert ACCURACY_BOUNDS[0] <= parse_numeric(m.accuracy, -1) <= ACCURACY_BOUNDS[1]
            lo, hi = FALSE_POSITIVE_BOUNDS
            assert lo <= parse_numeric(m.false_positives, -1) <= hi

    def test_resolved_never_decreases(self, rng):
        m = make_metrics()
        for _ in range(500):
            nxt = drift(m, VariationIntensity.HIGH, rng)
            assert nxt.resolved_incidents >= m.resolved_incidents
            m = nxt

    def test_display_formats(self, rng):
        m = drift(make_metrics(), VariationIntensity.MEDIUM, rng)
        assert m.mttr.endswith(" min")
        assert m.accuracy.endswith("%")
        assert m.false_positives.endswith("%")

    def test_no_previous_gives_flat_trends(self, rng):
        m = drift(make_metrics(alerts_trend="+5.0%"), VariationIntensity.LOW, rng)
        assert all(getattr(m, f) == "0%" for f in TREND_FIELDS)

    def test_trends_against_previous(self, rng):
        previous = make_metrics(total_alerts=100)
        m = drift(make_metrics(total_alerts=100), VariationIntensity.LOW, rng, previous)
        assert m.alerts_trend == calculate_trend(m.total_alerts, 100)

    def test_trends_disabled_keep_old_values(self, rng):
        current = make_metrics(alerts_trend="+12.0%")
        m = drift(current, VariationIntensity.LOW, rng, make_metrics(), enable_trends=False)
        assert m.alerts_trend == "+12.0%"

    def test_garbage_rates_fall_back_to_baseline(self):
        class _Zero(random.Random):
            def uniform(self, a, b):
                return 0.0

        m = drift(make_metrics(mttr="??", accuracy="", false_positives="bad"),
                  VariationIntensity.LOW, _Zero())
        assert (m.mttr, m.accuracy, m.false_positives) == ("12.0 min", "94.2%", "5.8%")

    def test_input_not_mutated(self, rng):
        current = make_metrics()
        drift(current, VariationIntensity.HIGH, rng)
        assert current == make_metrics()


# ═══════════════════════════════════════════════════════════════════════════
#  History
# ═══════════════════════════════════════════════════════════════════════════


class TestMetricsHistory:
    def test_bounded(self):
        history = MetricsHistory(limit=3)
        for i in range(5):
            history.append(make_metrics(total_alerts=i), f"2026-02-26T10:00:0{i}Z")
        assert len(history) == 3
        assert history.latest().total_alerts == 4

    def test_frame_columns(self):
        history = MetricsHistory()
        history.append(make_metrics(), "2026-02-26T10:00:00Z")
        df = history.to_frame()
        assert list(df.columns) == [
            "timestamp", "total_alerts", "active_investigations", "resolved_incidents",
            "mttr", "accuracy", "false_positives",
        ]
        assert df.loc[0, "mttr"] == 12.5
        assert str(df["timestamp"].dt.tz) == "UTC"

    def test_stats_fallback_to_current(self):
        stats = MetricsHistory().stats(make_metrics(total_alerts=42))
        assert stats.average_alerts == 42.0
        assert stats.average_mttr == 12.5
        assert stats.volatility == "low"

    def test_stats_fallback_without_anything(self):
        stats = MetricsHistory().stats()
        assert stats.average_alerts == 0.0
        assert stats.average_accuracy == 94.2

    @pytest.mark.parametrize(
        "counts, volatility",
        [((10, 14), "low"), ((10, 15), "medium"), ((10, 20), "high")],
    )
    def test_volatility(self, counts, volatility):
        history = MetricsHistory()
        for n in counts:
            history.append(make_metrics(total_alerts=n), "2026-02-26T10:00:00Z")
        stats = history.stats()
        assert stats.volatility == volatility
        assert stats.average_alerts == sum(counts) / len(counts)

    def test_stats_window_is_last_ten(self):
        history = MetricsHistory()
        for n in [1000] * 5 + [10] * 10:
            history.append(make_metrics(total_alerts=n), "2026-02-26T10:00:00Z")
        assert history.stats().average_alerts == 10.0

    def test_clear(self):
        history = MetricsHistory()
        history.append(make_metrics())
        history.clear()
        assert len(history) == 0
        assert history.latest() is None

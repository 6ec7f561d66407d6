"""Simulation configuration -- parsed from ``simulation.yaml`` and validated.

Layout of the YAML document (all keys optional)::

    producers:
      alerts:  {enabled: true, interval_ms: 30000}
      sync:    {enabled: true, interval_ms: 5000}
      health:  {enabled: true, interval_ms: 30000}
      metrics: {enabled: true, interval_ms: 60000}
      team:    {enabled: true, interval_ms: 45000}
      hunts:   {enabled: true, interval_ms: 45000}
    alerts:
      max_per_interval: 2
      severity_weights: {Critical: 0.1, High: 0.25, Medium: 0.45, Low: 0.2}
    escalation: {enabled: true, threshold_ms: 300000}
    integrations: {outage_chance: 0.02, recovery_chance: 0.3}
    metrics: {variation_intensity: medium, enable_trends: true}
    notifications:
      alerts: true
      integrations: true
      team: false
      system: true
      severity_threshold: Medium
      max_per_minute: 10
      max_visible: 5
      default_duration_ms: 5000
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from src.contracts import Severity, VariationIntensity

log = logging.getLogger(__name__)

MIN_INTERVAL_MS = 100
MAX_INTERVAL_MS = 24 * 3600 * 1000
_WEIGHT_TOLERANCE = 1e-6

PRODUCER_NAMES: tuple[str, ...] = ("alerts", "sync", "health", "metrics", "team", "hunts")

_DEFAULT_INTERVALS_MS: dict[str, int] = {
    "alerts": 30_000,
    "sync": 5_000,
    "health": 30_000,
    "metrics": 60_000,
    "team": 45_000,
    "hunts": 45_000,
}

DEFAULT_SEVERITY_WEIGHTS: dict[Severity, float] = {
    Severity.CRITICAL: 0.10,
    Severity.HIGH: 0.25,
    Severity.MEDIUM: 0.45,
    Severity.LOW: 0.20,
}


class ConfigError(ValueError):
    """Raised when a simulation configuration cannot be used."""


@dataclass(slots=True)
class ProducerConfig:
    enabled: bool = True
    interval_ms: int = 30_000


@dataclass(slots=True)
class NotificationConfig:
    enable_alerts: bool = True
    enable_integrations: bool = True
    enable_team: bool = False
    enable_system: bool = True
    severity_threshold: Severity = Severity.MEDIUM
    max_per_minute: int = 10
    max_visible: int = 5
    default_duration_ms: int = 5000


def _default_producers() -> dict[str, ProducerConfig]:
    return {name: ProducerConfig(True, ms) for name, ms in _DEFAULT_INTERVALS_MS.items()}


@dataclass(slots=True)
class SimulationConfig:
    producers: dict[str, ProducerConfig] = field(default_factory=_default_producers)
    max_alerts_per_interval: int = 2
    severity_weights: dict[Severity, float] = field(
        default_factory=lambda: dict(DEFAULT_SEVERITY_WEIGHTS)
    )
    auto_escalate: bool = True
    escalation_interval_ms: int = 300_000
    outage_chance: float = 0.02
    recovery_chance: float = 0.3
    variation_intensity: VariationIntensity = VariationIntensity.MEDIUM
    enable_trends: bool = True
    notifications: NotificationConfig = field(default_factory=NotificationConfig)

    # ── construction ─────────────────────────────────────────────────────

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> SimulationConfig:
        """Build a config from a parsed YAML mapping.

        Raises:
            ConfigError: On unknown producers, sections that are not
                mappings, non-boolean flags or unparsable enum values.
        """
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config must be a mapping, got {type(raw).__name__}")
        cfg = cls()

        producers = _section(raw, "producers")
        for name in producers:
            if name not in PRODUCER_NAMES:
                raise ConfigError(
                    f"Unknown producer '{name}' (expected one of {', '.join(PRODUCER_NAMES)})"
                )
            pcfg = _section(producers, name, "producers.")
            current = cfg.producers[name]
            cfg.producers[name] = ProducerConfig(
                enabled=_flag(pcfg, "enabled", current.enabled, f"producers.{name}."),
                interval_ms=pcfg.get("interval_ms", current.interval_ms),
            )

        alerts = _section(raw, "alerts")
        cfg.max_alerts_per_interval = alerts.get("max_per_interval", cfg.max_alerts_per_interval)
        if "severity_weights" in alerts:
            cfg.severity_weights = _parse_weights(alerts["severity_weights"])

        esc = _section(raw, "escalation")
        cfg.auto_escalate = _flag(esc, "enabled", cfg.auto_escalate, "escalation.")
        cfg.escalation_interval_ms = esc.get("threshold_ms", cfg.escalation_interval_ms)

        integ = _section(raw, "integrations")
        cfg.outage_chance = integ.get("outage_chance", cfg.outage_chance)
        cfg.recovery_chance = integ.get("recovery_chance", cfg.recovery_chance)

        met = _section(raw, "metrics")
        cfg.variation_intensity = _parse_enum(
            VariationIntensity, met.get("variation_intensity", cfg.variation_intensity),
            "metrics.variation_intensity",
        )
        cfg.enable_trends = _flag(met, "enable_trends", cfg.enable_trends, "metrics.")

        notif = _section(raw, "notifications")
        n = cfg.notifications
        cfg.notifications = NotificationConfig(
            enable_alerts=_flag(notif, "alerts", n.enable_alerts, "notifications."),
            enable_integrations=_flag(notif, "integrations", n.enable_integrations,
                                      "notifications."),
            enable_team=_flag(notif, "team", n.enable_team, "notifications."),
            enable_system=_flag(notif, "system", n.enable_system, "notifications."),
            severity_threshold=_parse_enum(
                Severity, notif.get("severity_threshold", n.severity_threshold),
                "notifications.severity_threshold",
            ),
            max_per_minute=notif.get("max_per_minute", n.max_per_minute),
            max_visible=notif.get("max_visible", n.max_visible),
            default_duration_ms=notif.get("default_duration_ms", n.default_duration_ms),
        )
        return cfg

    # ── validation ───────────────────────────────────────────────────────

    def validate(self) -> SimulationConfig:
        """Return a validated copy with severity weights normalised to 1.0.

        Raises:
            ConfigError: Describing the first invalid setting found.
        """
        cfg = copy.deepcopy(self)

        for name in PRODUCER_NAMES:
            if name not in cfg.producers:
                cfg.producers[name] = ProducerConfig(False, _DEFAULT_INTERVALS_MS[name])
            _check_interval(f"producers.{name}.interval_ms", cfg.producers[name].interval_ms)
        _check_interval("escalation.threshold_ms", cfg.escalation_interval_ms)

        _check_int_min("alerts.max_per_interval", cfg.max_alerts_per_interval, 1)
        _check_probability("integrations.outage_chance", cfg.outage_chance)
        _check_probability("integrations.recovery_chance", cfg.recovery_chance)
        cfg.severity_weights = normalise_weights(cfg.severity_weights)

        n = cfg.notifications
        _check_int_min("notifications.max_per_minute", n.max_per_minute, 1)
        _check_int_min("notifications.max_visible", n.max_visible, 1)
        _check_int_min("notifications.default_duration_ms", n.default_duration_ms, 0)
        if not isinstance(n.severity_threshold, Severity):
            raise ConfigError(f"notifications.severity_threshold: invalid {n.severity_threshold!r}")
        if not isinstance(cfg.variation_intensity, VariationIntensity):
            raise ConfigError(f"metrics.variation_intensity: invalid {cfg.variation_intensity!r}")
        return cfg

    def with_producer(self, name: str, *, enabled: bool | None = None,
                      interval_ms: int | None = None) -> SimulationConfig:
        """Copy with one producer's settings changed (handy in tests and the CLI)."""
        cfg = copy.deepcopy(self)
        cur = cfg.producers.get(name, ProducerConfig())
        cfg.producers[name] = dataclasses.replace(
            cur,
            enabled=cur.enabled if enabled is None else enabled,
            interval_ms=cur.interval_ms if interval_ms is None else interval_ms,
        )
        return cfg


# ── helpers ──────────────────────────────────────────────────────────────


def _section(raw: dict[str, Any], key: str, prefix: str = "") -> dict[str, Any]:
    """``raw[key]`` as a mapping; a missing or empty value gives ``{}``."""
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"{prefix}{key}: expected a mapping, got {type(value).__name__} {value!r}"
        )
    return value


def _flag(raw: dict[str, Any], key: str, default: bool, prefix: str = "") -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{prefix}{key}: expected true or false, got {value!r}")
    return value


def _parse_enum(enum_cls: type, value: Any, where: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"{where}: {value!r} is not one of {allowed}") from None


def _parse_weights(raw: dict[str, Any]) -> dict[Severity, float]:
    if not isinstance(raw, dict):
        raise ConfigError("alerts.severity_weights must be a mapping of severity -> weight")
    weights: dict[Severity, float] = {}
    for key, value in raw.items():
        sev = _parse_enum(Severity, key, "alerts.severity_weights")
        try:
            weights[sev] = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"alerts.severity_weights.{key}: {value!r} is not a number") from None
    return weights


def normalise_weights(weights: dict[Severity, float]) -> dict[Severity, float]:
    """Validate a severity weight table and rescale it to sum to 1.0.

    Severities missing from the table get weight 0.

    Raises:
        ConfigError: On negative, NaN or infinite weights, or an all-zero table.
    """
    table: dict[Severity, float] = {}
    for sev in Severity:
        w = float(weights.get(sev, 0.0))
        if math.isnan(w) or math.isinf(w) or w < 0:
            raise ConfigError(f"alerts.severity_weights.{sev.value}: invalid weight {w!r}")
        table[sev] = w
    total = sum(table.values())
    if total <= 0:
        raise ConfigError("alerts.severity_weights: weights sum to zero")
    if abs(total - 1.0) > _WEIGHT_TOLERANCE:
        log.warning("Severity weights sum to %.4f, renormalising to 1.0", total)
        table = {sev: w / total for sev, w in table.items()}
    return table


def _check_interval(where: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where}: expected milliseconds, got {value!r}")
    if not math.isfinite(value) or not MIN_INTERVAL_MS <= value <= MAX_INTERVAL_MS:
        raise ConfigError(
            f"{where}: {value!r} ms is outside [{MIN_INTERVAL_MS}, {MAX_INTERVAL_MS}]"
        )


def _check_probability(where: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where}: expected a probability, got {value!r}")
    if not 0.0 <= value <= 1.0:  # also rejects NaN
        raise ConfigError(f"{where}: {value!r} is outside [0, 1]")


def _check_int_min(where: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"{where}: expected an integer >= {minimum}, got {value!r}")

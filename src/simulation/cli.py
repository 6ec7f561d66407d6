"""Command-line runner for the SOC live simulation."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
from pathlib import Path

import pandas as pd

from src.contracts import Notification
from src.notifications.center import NotificationCenter
from src.notifications.dispatcher import NotificationDispatcher
from src.shared.config_loader import load_yaml
from src.shared.logger import setup_logging
from src.shared.seed import init_seed
from src.simulation.config import (
    MAX_INTERVAL_MS,
    MIN_INTERVAL_MS,
    ConfigError,
    SimulationConfig,
)
from src.simulation.engine import SimulationEngine
from src.store.seed_state import build_initial_state
from src.store.state import StateSnapshot
from src.store.state_store import StateStore

log = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="soc-simulator",
        description="Run the SOC live simulation and export alerts and notifications.",
    )
    p.add_argument(
        "--config",
        type=str,
        default="config/simulation.yaml",
        help="Path to simulation.yaml (default: config/simulation.yaml).",
    )
    p.add_argument(
        "--seed-state",
        type=str,
        default="config/seed_state.yaml",
        help="Initial integrations / team / alerts / metrics. "
        "Pass an empty string to start from an empty store.",
    )
    p.add_argument(
        "--duration-sec",
        type=float,
        default=120.0,
        help="How long to run the producers, in seconds (default: 120).",
    )
    p.add_argument(
        "--speed",
        type=float,
        default=1.0,
        help="Divide every producer interval by this factor (default: 1.0).",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible run (default: system entropy).",
    )
    p.add_argument(
        "--out",
        type=str,
        default="out",
        help="Output directory for alerts.jsonl and notifications.jsonl (default: out).",
    )
    p.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )
    return p.parse_args(argv)


def apply_speed(cfg: SimulationConfig, speed: float) -> SimulationConfig:
    """Scale producer and escalation intervals down by *speed*.

    Scaled intervals are clamped to ``[MIN_INTERVAL_MS, MAX_INTERVAL_MS]``,
    so the result still passes ``validate()``.
    """
    if speed <= 0:
        raise ConfigError("--speed must be positive")
    if speed == 1.0:
        return cfg

    def _scaled(ms: int) -> int:
        return min(MAX_INTERVAL_MS, max(MIN_INTERVAL_MS, int(ms / speed)))

    producers = {
        name: dataclasses.replace(p, interval_ms=_scaled(p.interval_ms))
        for name, p in cfg.producers.items()
    }
    return dataclasses.replace(
        cfg,
        producers=producers,
        escalation_interval_ms=_scaled(cfg.escalation_interval_ms),
    )


def write_jsonl(records: list, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        for rec in records:
            fh.write(rec.to_json() + "\n")
    log.info("Wrote %d records -> %s", len(records), path)


def alert_summary(snapshot: StateSnapshot) -> pd.DataFrame:
    """Severity x status alert counts."""
    if not snapshot.alerts:
        return pd.DataFrame()
    df = pd.DataFrame([a.to_dict() for a in snapshot.alerts])
    return pd.crosstab(df["severity"], df["status"], margins=True, margins_name="Total")


class NotificationLog:
    """Center listener that logs each notification the first time it is queued.

    Only ids still in the queue are remembered, so memory stays bounded by
    the queue capacity.
    """

    def __init__(self) -> None:
        self.shown: set[str] = set()

    def __call__(self, notes: list[Notification]) -> None:
        for n in notes:
            if n.id not in self.shown:
                log.info("NOTIFY [%s] %s: %s", n.type.value, n.title, n.message)
        self.shown = {n.id for n in notes}


async def run_simulation(store: StateStore, cfg: SimulationConfig, seed: int | None,
                         duration_sec: float) -> tuple[SimulationEngine, list[Notification]]:
    loop = asyncio.get_running_loop()
    rng = init_seed(seed)
    center = NotificationCenter(
        max_notifications=cfg.notifications.max_visible,
        default_duration_ms=cfg.notifications.default_duration_ms,
        call_later=loop.call_later,
        rng=rng,
    )
    center.subscribe(NotificationLog())
    dispatcher = NotificationDispatcher(center, cfg.notifications, loop.time)
    engine = SimulationEngine(store, rng, loop, dispatcher)

    engine.start(cfg)
    try:
        await asyncio.sleep(duration_sec)
    finally:
        engine.stop()
    return engine, list(center.history)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level)

    try:
        cfg = SimulationConfig.from_dict(load_yaml(args.config)).validate()
        cfg = apply_speed(cfg, args.speed)
        initial = (
            build_initial_state(load_yaml(args.seed_state)) if args.seed_state
            else StateSnapshot()
        )
        store = StateStore(initial)
        engine, notifications = asyncio.run(
            run_simulation(store, cfg, args.seed, args.duration_sec)
        )
    except (ValueError, FileNotFoundError) as exc:
        log.error("%s", exc)
        return 2

    out_dir = Path(args.out)
    snapshot = store.snapshot()
    write_jsonl(list(snapshot.alerts), out_dir / "alerts.jsonl")
    write_jsonl(notifications, out_dir / "notifications.jsonl")

    stats = engine.stats
    print(f"Simulation finished after {args.duration_sec:g}s")
    print(f"  alerts generated: {stats.alerts_generated}, escalated: {stats.alerts_escalated}")
    print(f"  health changes: {stats.health_changes}, sync updates: {stats.sync_updates}")
    print(f"  notifications: {len(notifications)} "
          f"(rate limited: {engine.notifications.stats.rate_limited})")
    summary = alert_summary(snapshot)
    if not summary.empty:
        print()
        print(summary.to_string())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Scheduling Coordinator -- independent periodic ticks on one asyncio loop.

Each task owns exactly one pending ``asyncio.TimerHandle``.  A tick runs
to completion synchronously and re-arms its own timer afterwards, so a
task never overlaps itself.  Exceptions raised by a tick are logged and
counted; the task keeps its schedule.

``start()`` and ``stop()`` both bump a generation counter.  A callback
carrying an older generation returns without running, which makes a
handle that slipped past ``cancel()`` harmless.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PeriodicTask:
    name: str
    interval_sec: float
    tick: Callable[[], None]


class Scheduler:
    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop
        self._tasks: dict[str, PeriodicTask] = {}
        self._handles: dict[str, asyncio.TimerHandle] = {}
        self._generation = 0
        self.tick_counts: dict[str, int] = {}
        self.failure_counts: dict[str, int] = {}

    # ── lifecycle ────────────────────────────────────────────────────────

    def start(self, tasks: Iterable[PeriodicTask]) -> None:
        """Schedule *tasks*, replacing whatever was running before."""
        self.stop()
        self._generation += 1
        gen = self._generation
        for task in tasks:
            if task.interval_sec <= 0:
                raise ValueError(f"Task '{task.name}' needs a positive interval")
            if task.name in self._tasks:
                raise ValueError(f"Duplicate task name '{task.name}'")
            self._tasks[task.name] = task
            self.tick_counts.setdefault(task.name, 0)
            self.failure_counts.setdefault(task.name, 0)
            self._arm(task, gen)
        log.info("Scheduler started: %s", ", ".join(
            f"{n}@{t.interval_sec:g}s" for n, t in self._tasks.items()) or "no tasks")

    def stop(self) -> None:
        """Cancel every pending tick.  Safe to call any number of times."""
        self._generation += 1
        if not self._handles and not self._tasks:
            return
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        self._tasks.clear()
        log.info("Scheduler stopped")

    # ── introspection ────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def is_running(self, name: str) -> bool:
        return name in self._tasks

    def active_tasks(self) -> list[str]:
        return sorted(self._tasks)

    # ── internals ────────────────────────────────────────────────────────

    def _arm(self, task: PeriodicTask, gen: int) -> None:
        self._handles[task.name] = self.loop.call_later(
            task.interval_sec, self._fire, task.name, gen
        )

    def _fire(self, name: str, gen: int) -> None:
        if gen != self._generation:
            return
        task = self._tasks.get(name)
        if task is None:
            return
        self._handles.pop(name, None)
        self.tick_counts[name] = self.tick_counts.get(name, 0) + 1
        try:
            task.tick()
        except Exception:
            self.failure_counts[name] = self.failure_counts.get(name, 0) + 1
            log.exception("Tick '%s' failed; keeping schedule", name)
        # the tick itself may have called stop()
        if gen == self._generation and name in self._tasks:
            self._arm(task, gen)

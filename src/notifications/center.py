"""Notification center -- the bounded queue the UI renders.

Capacity is fixed; adding to a full queue evicts the oldest notification.
A notification with ``duration > 0`` that is not persistent gets a
deferred removal scheduled when it is added.  Removing it earlier (by
hand, by eviction or by a clear) cancels that pending removal.
``history`` keeps only the last ``HISTORY_LIMIT`` additions.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import random
from collections import deque
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from src.contracts import Notification, NotificationAction, NotificationType
from src.shared.ids import notification_id
from src.shared.timeutil import format_ts, utc_now

log = logging.getLogger(__name__)

DEFAULT_MAX_NOTIFICATIONS = 5
DEFAULT_DURATION_MS = 5000
HISTORY_LIMIT = 500


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


CallLater = Callable[[float, Callable[[], None]], Cancellable]
Listener = Callable[[list[Notification]], None]


def _loop_call_later(delay: float, callback: Callable[[], None]) -> Cancellable | None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        log.debug("No running event loop; auto-dismiss not scheduled")
        return None
    return loop.call_later(delay, callback)


class NotificationCenter:
    def __init__(self, max_notifications: int = DEFAULT_MAX_NOTIFICATIONS,
                 default_duration_ms: int = DEFAULT_DURATION_MS,
                 call_later: CallLater | None = None,
                 rng: random.Random | None = None,
                 now: Callable[[], datetime] = utc_now,
                 history_limit: int = HISTORY_LIMIT) -> None:
        if max_notifications < 1:
            raise ValueError("max_notifications must be >= 1")
        self.max_notifications = max_notifications
        self.default_duration_ms = default_duration_ms
        self._call_later = call_later or _loop_call_later
        self._rng = rng or random.Random()
        self._now = now
        self._items: list[Notification] = []
        self._timers: dict[str, Cancellable] = {}
        self._listeners: list[Listener] = []
        # most recent additions, evicted or not
        self.history: deque[Notification] = deque(maxlen=history_limit)

    # ── read side ────────────────────────────────────────────────────────

    @property
    def notifications(self) -> list[Notification]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, notification_id_: str) -> Notification | None:
        return next((n for n in self._items if n.id == notification_id_), None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        current = self.notifications
        for listener in list(self._listeners):
            listener(current)

    # ── write side ───────────────────────────────────────────────────────

    def add(self, message: str, type: NotificationType = NotificationType.INFO,
            title: str = "", duration: int | None = None, persistent: bool = False,
            actions: list[NotificationAction] | None = None,
            metadata: dict[str, Any] | None = None) -> str:
        """Queue a notification and return its id."""
        now = self._now()
        note = Notification(
            id=notification_id(self._rng, int(now.timestamp() * 1000)),
            message=message,
            type=type,
            title=title,
            timestamp=format_ts(now),
            duration=self.default_duration_ms if duration is None else duration,
            persistent=persistent,
            actions=list(actions or []),
            metadata=dict(metadata or {}),
        )
        while len(self._items) >= self.max_notifications:
            evicted = self._items.pop(0)
            self._cancel_timer(evicted.id)
            log.debug("Evicted notification %s (capacity %d)", evicted.id,
                      self.max_notifications)
        self._items.append(note)
        self.history.append(note)

        if note.auto_dismiss:
            handle = self._call_later(note.duration / 1000.0,
                                      lambda nid=note.id: self._expire(nid))
            if handle is not None:
                self._timers[note.id] = handle
        log.debug("Notification %s [%s] %s", note.id, note.type.value, note.title)
        self._notify()
        return note.id

    def remove(self, notification_id_: str) -> bool:
        self._cancel_timer(notification_id_)
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id_]
        removed = len(self._items) != before
        if removed:
            self._notify()
        return removed

    def update(self, notification_id_: str, **changes: Any) -> bool:
        """Merge *changes* into a queued notification; id and timestamp are fixed."""
        for key in ("id", "timestamp"):
            if key in changes:
                raise ValueError(f"Notification field '{key}' cannot be updated")
        for idx, note in enumerate(self._items):
            if note.id == notification_id_:
                self._items[idx] = dataclasses.replace(note, **changes)
                self._notify()
                return True
        return False

    def clear_all(self) -> None:
        for nid in list(self._timers):
            self._cancel_timer(nid)
        self._items.clear()
        self._notify()

    def clear_by_type(self, type: NotificationType) -> None:
        for note in self._items:
            if note.type is type:
                self._cancel_timer(note.id)
        self._items = [n for n in self._items if n.type is not type]
        self._notify()

    def _expire(self, notification_id_: str) -> None:
        self._timers.pop(notification_id_, None)
        if self.remove(notification_id_):
            log.debug("Notification %s auto-dismissed", notification_id_)

    def _cancel_timer(self, notification_id_: str) -> None:
        handle = self._timers.pop(notification_id_, None)
        if handle is not None:
            handle.cancel()

    # ── convenience ──────────────────────────────────────────────────────

    def show_info(self, message: str, **options: Any) -> str:
        return self.add(message, NotificationType.INFO, **{"title": "Information", **options})

    def show_success(self, message: str, **options: Any) -> str:
        return self.add(message, NotificationType.SUCCESS, **{"title": "Success", **options})

    def show_warning(self, message: str, **options: Any) -> str:
        return self.add(message, NotificationType.WARNING, **{"title": "Warning", **options})

    def show_error(self, message: str, **options: Any) -> str:
        # errors stay until dismissed unless told otherwise
        return self.add(message, NotificationType.ERROR,
                        **{"title": "Error", "duration": 0, **options})

    def show_alert(self, message: str, **options: Any) -> str:
        return self.add(message, NotificationType.ALERT,
                        **{"title": "Security Alert", "duration": 0, "persistent": True,
                           **options})

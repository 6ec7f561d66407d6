"""User notification record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.contracts.codec import to_compact_json, to_plain_dict
from src.contracts.enums import NotificationType


@dataclass(slots=True, frozen=True)
class NotificationAction:
    """A button on a notification.

    ``effect`` is an opaque command string interpreted by the UI, e.g.
    ``"investigate:ALT-7F3A-0001"`` or ``"dismiss"``.
    """

    label: str
    effect: str
    variant: str = "secondary"  # primary | secondary


@dataclass(slots=True)
class Notification:
    id: str
    message: str
    type: NotificationType
    title: str
    timestamp: str
    duration: int = 5000  # ms, 0 = no auto-dismiss
    persistent: bool = False
    actions: list[NotificationAction] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def auto_dismiss(self) -> bool:
        return self.duration > 0 and not self.persistent

    def to_dict(self) -> dict[str, Any]:
        return to_plain_dict(self)

    def to_json(self) -> str:
        return to_compact_json(self)

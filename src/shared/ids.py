"""Identifier factories for generated records."""

from __future__ import annotations

import itertools
import random
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


class IdFactory:
    """Produce ``PREFIX-TOKEN-0001`` style ids.

    The token is drawn once per factory so ids from two engines in the
    same process do not collide; the counter keeps ids unique and ordered
    within one factory.
    """

    def __init__(self, prefix: str, rng: random.Random) -> None:
        self.prefix = prefix
        self.token = f"{rng.getrandbits(16):04X}"
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{self.token}-{next(self._counter):04d}"


def notification_id(rng: random.Random, now_ms: int | None = None) -> str:
    """Time + random derived id, e.g. ``notification-1760870400000-k3j9x0a1b``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(rng.choice(_BASE36) for _ in range(9))
    return f"notification-{now_ms}-{suffix}"

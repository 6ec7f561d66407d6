"""Random source initialisation for reproducible simulations."""

from __future__ import annotations

import logging
import random

log = logging.getLogger(__name__)


def init_seed(seed: int | None) -> random.Random:
    """Return a dedicated ``Random`` for the engine.

    ``None`` gives an OS-seeded generator (live demo); an integer gives a
    reproducible run.  The global ``random`` module is left untouched.
    """
    if seed is None:
        log.info("Random seed: system entropy")
        return random.Random()
    log.info("Random seed initialised: %d", seed)
    return random.Random(seed)

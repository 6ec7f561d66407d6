"""Logging setup for the simulator CLI and tests."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a compact single-line format.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Unknown names fall back to INFO.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format=_FORMAT,
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )
    # asyncio logs every slow callback at DEBUG; keep it at WARNING
    logging.getLogger("asyncio").setLevel(max(numeric, logging.WARNING))

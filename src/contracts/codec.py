"""Plain-data conversion shared by every contract record."""

from __future__ import annotations

import json
from dataclasses import asdict
from enum import Enum
from typing import Any


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_plain_dict(record: Any) -> dict[str, Any]:
    """Return a JSON-ready dict (enums flattened to their values)."""
    return _plain(asdict(record))


def to_compact_json(record: Any) -> str:
    return json.dumps(to_plain_dict(record), ensure_ascii=False, separators=(",", ":"))

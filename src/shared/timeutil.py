"""UTC timestamp helpers shared by producers and the notification layer."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def format_ts(dt: datetime) -> str:
    """ISO-8601 with a ``Z`` suffix, second precision."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_ts(iso: str) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC.

    Raises:
        ValueError: When *iso* is not a valid timestamp.
    """
    dt = datetime.fromisoformat(iso.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

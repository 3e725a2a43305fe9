"""Shared timestamp formatting helpers."""
from __future__ import annotations

from datetime import datetime, timezone


def format_datetime_utc(value: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC string with millisecond precision."""
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_to_iso(value: float) -> str:
    return format_datetime_utc(datetime.fromtimestamp(value, tz=timezone.utc))


def utc_now_iso() -> str:
    return format_datetime_utc(datetime.now(timezone.utc))

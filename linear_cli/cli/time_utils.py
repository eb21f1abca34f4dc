from __future__ import annotations

from datetime import datetime, timezone


def _age(value: datetime, now: datetime | None) -> tuple[int, int, int]:
    now = now or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    minutes = int((now - value).total_seconds() // 60)
    hours = minutes // 60
    return minutes, hours, hours // 24


def relative_time(value: datetime | None, *, now: datetime | None = None) -> str:
    if value is None:
        return "-"
    minutes, hours, days = _age(value, now)
    if days > 0:
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} min ago"
    return "just now"


def compact_time(value: datetime | None, *, now: datetime | None = None) -> str:
    if value is None:
        return "-"
    minutes, hours, days = _age(value, now)
    if days > 0:
        return f"{days}d"
    if hours > 0:
        return f"{hours}h"
    if minutes > 0:
        return f"{minutes}m"
    return "now"


def format_date(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.date().isoformat()


def date_with_age(value: datetime | None) -> str:
    if value is None:
        return "-"
    return f"{format_date(value)} ({relative_time(value)})"

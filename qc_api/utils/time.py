from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


UTC = timezone.utc


def utcnow() -> datetime:
    """
    Returns timezone-aware current UTC time.
    """
    return datetime.now(UTC)


def ensure_aware(dt: datetime, assume_utc: bool = True) -> datetime:
    """
    Ensure a datetime is timezone-aware. If naive and assume_utc is True,
    interpret as UTC; otherwise raise ValueError.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(UTC)
    if assume_utc:
        return dt.replace(tzinfo=UTC)
    raise ValueError("Naive datetime provided and assume_utc=False")


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    ensure_aware that lets None through. Some backends (SQLite) drop tzinfo
    on the way back from the database.
    """
    if dt is None:
        return None
    return ensure_aware(dt)


def seconds_between(start: datetime, end: Optional[datetime] = None) -> int:
    """
    Whole seconds elapsed from `start` to `end` (default now), never negative.
    """
    end_ = ensure_aware(end or utcnow())
    delta = int((end_ - ensure_aware(start)).total_seconds())
    return max(delta, 0)


def utc_day(dt: datetime) -> date:
    """
    Calendar day of `dt` in UTC.
    """
    return ensure_aware(dt).date()


def humanize_delta(seconds: int) -> str:
    """
    Simple humanization for durations like '1h 25m' or '17m'.
    """
    if seconds < 0:
        seconds = 0
    minutes, _ = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    parts.append(f"{minutes}m")
    return " ".join(parts)

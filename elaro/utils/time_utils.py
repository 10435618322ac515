"""
Time and date utilities for history windows.

Key concepts:
  - Storage timestamps: every timestamp is stored in UTC as
    ``YYYY-MM-DDTHH:MM:SSZ`` so lexical order equals chronological order.
  - Local hour: time-of-day features bucket events by the hour on the
    family's wall clock (the configured ``engine.timezone``), not UTC.
  - Week start: weekly reviews start at local midnight on the configured
    first weekday (Monday = 0 … Sunday = 6, as ``date.weekday()``).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

DB_TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def ensure_aware(moment: datetime) -> datetime:
    """Return ``moment`` with tzinfo; naive values are interpreted as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def to_db_ts(moment: datetime) -> str:
    """Format ``moment`` as a UTC storage timestamp string."""
    return ensure_aware(moment).astimezone(timezone.utc).strftime(DB_TS_FORMAT)


def from_db_ts(value: str) -> datetime:
    """Parse a storage timestamp string back into an aware UTC datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def local_hour(moment: datetime, tz: tzinfo) -> int:
    """Return the hour (0–23) of ``moment`` on the wall clock of ``tz``."""
    return ensure_aware(moment).astimezone(tz).hour


def week_start_for(moment: datetime, tz: tzinfo, first_weekday: int = 0) -> datetime:
    """Return local midnight of the first day of the week containing ``moment``.

    Args:
        moment: Any instant within the week.
        tz: Wall-clock timezone used to decide where days begin.
        first_weekday: 0 = Monday … 6 = Sunday.

    Returns:
        Timezone-aware datetime in ``tz``.

    Raises:
        ValueError: If ``first_weekday`` is outside 0..6.
    """
    if not 0 <= first_weekday <= 6:
        raise ValueError(f"first_weekday must be in 0..6, got {first_weekday}.")
    local = ensure_aware(moment).astimezone(tz)
    offset = (local.weekday() - first_weekday) % 7
    start_day = local.date() - timedelta(days=offset)
    return datetime(start_day.year, start_day.month, start_day.day, tzinfo=tz)

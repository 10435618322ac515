"""
Tests for elaro/utils/time_utils.py.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from elaro.utils.time_utils import (
    ensure_aware,
    from_db_ts,
    local_hour,
    to_db_ts,
    week_start_for,
)

BERLIN = ZoneInfo("Europe/Berlin")


class TestStorageTimestamps:
    def test_to_db_ts_normalizes_to_utc(self):
        moment = datetime(2026, 10, 14, 11, 30, tzinfo=timezone(timedelta(hours=2)))
        assert to_db_ts(moment) == "2026-10-14T09:30:00Z"

    def test_naive_is_utc(self):
        assert to_db_ts(datetime(2026, 10, 14, 9, 30)) == "2026-10-14T09:30:00Z"
        assert ensure_aware(datetime(2026, 1, 1)).tzinfo is timezone.utc

    def test_from_db_ts(self):
        parsed = from_db_ts("2026-10-14T09:30:00Z")
        assert parsed == datetime(2026, 10, 14, 9, 30, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)


class TestLocalHour:
    def test_uses_wall_clock(self):
        moment = datetime(2026, 7, 1, 22, 15, tzinfo=timezone.utc)
        assert local_hour(moment, timezone.utc) == 22
        assert local_hour(moment, BERLIN) == 0


class TestWeekStart:
    def test_monday_week(self):
        wednesday = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)
        assert week_start_for(wednesday, timezone.utc) == datetime(2026, 10, 12, tzinfo=timezone.utc)

    def test_sunday_week(self):
        wednesday = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)
        assert week_start_for(wednesday, timezone.utc, first_weekday=6).day == 11

    def test_start_of_week_is_its_own_start(self):
        monday = datetime(2026, 10, 12, tzinfo=timezone.utc)
        assert week_start_for(monday, timezone.utc) == monday

    def test_local_midnight(self):
        # Sunday 23:30 UTC is already Monday in Berlin.
        moment = datetime(2026, 10, 11, 23, 30, tzinfo=timezone.utc)
        start = week_start_for(moment, BERLIN)
        assert (start.year, start.month, start.day, start.hour) == (2026, 10, 12, 0)
        assert start.tzinfo is BERLIN

    def test_bad_weekday(self, now):
        with pytest.raises(ValueError):
            week_start_for(now, timezone.utc, first_weekday=7)

"""
Repository for weekly summaries (one row per focus per week).
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from elaro.db.repositories.base import BaseRepository
from elaro.models.summary import WeeklySummary
from elaro.taxonomy.action_taxonomy import TweakDecision
from elaro.utils.time_utils import from_db_ts, to_db_ts

logger = logging.getLogger(__name__)


class WeeklySummaryRepository(BaseRepository):
    """Read/write access to the ``weekly_summaries`` table."""

    def upsert(self, summary: WeeklySummary) -> None:
        """Write ``summary``, superseding any row for the same ``(focus_id, week_start)``."""
        self.execute(
            """
            INSERT INTO weekly_summaries (
                summary_id, week_start, focus_id, win_text, hard_text, suggested_tweak
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(focus_id, week_start) DO UPDATE SET
                summary_id      = excluded.summary_id,
                win_text        = excluded.win_text,
                hard_text       = excluded.hard_text,
                suggested_tweak = excluded.suggested_tweak,
                updated_at      = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (
                summary.id,
                to_db_ts(summary.week_start),
                summary.focus_id,
                summary.win_text,
                summary.hard_text,
                summary.suggested_tweak.value,
            ),
        )

    def get(self, focus_id: str, week_start: datetime) -> Optional[WeeklySummary]:
        row = self.fetchone(
            "SELECT * FROM weekly_summaries WHERE focus_id = ? AND week_start = ?;",
            (focus_id, to_db_ts(week_start)),
        )
        return _row_to_summary(row) if row else None

    def get_for_focus(self, focus_id: str, limit: int = 10) -> list[WeeklySummary]:
        """Return up to ``limit`` summaries for ``focus_id``, newest week first."""
        rows = self.fetchall(
            """
            SELECT * FROM weekly_summaries
            WHERE focus_id = ?
            ORDER BY week_start DESC
            LIMIT ?;
            """,
            (focus_id, limit),
        )
        return [_row_to_summary(r) for r in rows]

    def count(self) -> int:
        return self.count_rows("weekly_summaries")


def _row_to_summary(row: sqlite3.Row) -> WeeklySummary:
    return WeeklySummary(
        id=row["summary_id"],
        week_start=from_db_ts(row["week_start"]),
        focus_id=row["focus_id"],
        win_text=row["win_text"],
        hard_text=row["hard_text"],
        suggested_tweak=TweakDecision(row["suggested_tweak"]),
    )

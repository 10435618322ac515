"""
Repository for logged action instances (append-only history).
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from elaro.db.repositories.base import BaseRepository
from elaro.models.action import ActionInstance
from elaro.taxonomy.action_taxonomy import ActionStatus, FeltDifficulty
from elaro.utils.time_utils import from_db_ts, to_db_ts

logger = logging.getLogger(__name__)


class ActionInstanceRepository(BaseRepository):
    """Append-only access to the ``action_instances`` table.

    There is deliberately no update or delete method: an instance is
    written once when the caregiver logs an outcome.
    """

    def insert(self, instance: ActionInstance) -> bool:
        """Append ``instance``; a repeated id is ignored.

        Returns:
            ``True`` if a row was written, ``False`` if the id already existed.
        """
        cur = self.execute(
            """
            INSERT OR IGNORE INTO action_instances (
                instance_id, logged_at, focus_id, template_id, variant_duration,
                status, felt_difficulty, mood, note
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                instance.id,
                to_db_ts(instance.date),
                instance.focus_id,
                instance.template_id,
                instance.variant_duration,
                instance.status.value,
                instance.felt_difficulty.value if instance.felt_difficulty else None,
                instance.mood,
                instance.note,
            ),
        )
        written = cur.rowcount == 1
        if not written:
            logger.debug("Instance %s already recorded; ignoring duplicate.", instance.id)
        return written

    def get_by_id(self, instance_id: str) -> Optional[ActionInstance]:
        row = self.fetchone(
            "SELECT * FROM action_instances WHERE instance_id = ?;", (instance_id,)
        )
        return _row_to_instance(row) if row else None

    def get_in_range(
        self,
        start: datetime,
        end: datetime,
        focus_id: Optional[str] = None,
    ) -> list[ActionInstance]:
        """Return instances with ``start <= logged_at < end``, oldest first.

        Args:
            start: Inclusive lower bound.
            end: Exclusive upper bound.
            focus_id: Restrict to one focus area; ``None`` for all.
        """
        sql = "SELECT * FROM action_instances WHERE logged_at >= ? AND logged_at < ?"
        params: list[object] = [to_db_ts(start), to_db_ts(end)]
        if focus_id is not None:
            sql += " AND focus_id = ?"
            params.append(focus_id)
        sql += " ORDER BY logged_at, rowid;"
        return [_row_to_instance(r) for r in self.fetchall(sql, tuple(params))]

    def count(self, focus_id: Optional[str] = None) -> int:
        if focus_id is None:
            return self.count_rows("action_instances")
        return self.count_rows("action_instances", "focus_id = ?", (focus_id,))


def _row_to_instance(row: sqlite3.Row) -> ActionInstance:
    return ActionInstance(
        id=row["instance_id"],
        date=from_db_ts(row["logged_at"]),
        focus_id=row["focus_id"],
        template_id=row["template_id"],
        variant_duration=row["variant_duration"],
        status=ActionStatus(row["status"]),
        felt_difficulty=FeltDifficulty(row["felt_difficulty"]) if row["felt_difficulty"] else None,
        mood=row["mood"],
        note=row["note"],
    )

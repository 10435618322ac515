"""
Repository for focus areas.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from elaro.db.repositories.base import BaseRepository, dump_json, load_json
from elaro.models.focus import BuildingBlock, FocusArea
from elaro.utils.time_utils import from_db_ts, to_db_ts

logger = logging.getLogger(__name__)


class FocusAreaRepository(BaseRepository):
    """Read/write access to the ``focus_areas`` table."""

    def upsert(self, focus: FocusArea) -> None:
        self.execute(
            """
            INSERT INTO focus_areas (
                focus_id, name, active, started_at,
                pinned_micro_skill_titles, building_blocks
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(focus_id) DO UPDATE SET
                name                      = excluded.name,
                active                    = excluded.active,
                started_at                = excluded.started_at,
                pinned_micro_skill_titles = excluded.pinned_micro_skill_titles,
                building_blocks           = excluded.building_blocks,
                updated_at                = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            _focus_params(focus),
        )

    def insert_if_missing(self, focus: FocusArea) -> bool:
        """Insert ``focus`` unless a row with its id exists; return ``True`` if inserted."""
        cur = self.execute(
            """
            INSERT OR IGNORE INTO focus_areas (
                focus_id, name, active, started_at,
                pinned_micro_skill_titles, building_blocks
            ) VALUES (?, ?, ?, ?, ?, ?);
            """,
            _focus_params(focus),
        )
        return cur.rowcount == 1

    def get_by_id(self, focus_id: str) -> Optional[FocusArea]:
        row = self.fetchone("SELECT * FROM focus_areas WHERE focus_id = ?;", (focus_id,))
        return _row_to_focus(row) if row else None

    def get_all(self, active_only: bool = False) -> list[FocusArea]:
        sql = "SELECT * FROM focus_areas"
        if active_only:
            sql += " WHERE active = 1"
        rows = self.fetchall(sql + " ORDER BY rowid;")
        return [_row_to_focus(r) for r in rows]

    def set_pinned_titles(self, focus_id: str, titles: list[str]) -> bool:
        """Replace the pinned micro-skill titles; return ``False`` if the focus is unknown."""
        cur = self.execute(
            """
            UPDATE focus_areas
               SET pinned_micro_skill_titles = ?,
                   updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
             WHERE focus_id = ?;
            """,
            (dump_json(titles), focus_id),
        )
        return cur.rowcount == 1


def _focus_params(focus: FocusArea) -> tuple[object, ...]:
    return (
        focus.id,
        focus.name,
        int(focus.active),
        to_db_ts(focus.started_at) if focus.started_at else None,
        dump_json(focus.pinned_micro_skill_titles),
        dump_json(focus.building_blocks),
    )


def _row_to_focus(row: sqlite3.Row) -> FocusArea:
    return FocusArea(
        id=row["focus_id"],
        name=row["name"],
        active=bool(row["active"]),
        started_at=from_db_ts(row["started_at"]) if row["started_at"] else None,
        pinned_micro_skill_titles=load_json(row["pinned_micro_skill_titles"]),
        building_blocks=[BuildingBlock(**b) for b in load_json(row["building_blocks"])],
    )

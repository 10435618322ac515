"""
Base repository with shared SQLite helpers.

Repositories receive an open ``sqlite3.Connection`` (from
``get_connection()``) and speak pydantic models, never raw rows. All SQL is
explicit and lives in repository methods; there is no ORM.

Repositories do NOT catch storage errors. ``sqlite3.Error`` propagates to
the caller; the history adapter decides whether a failure is fatal (CLI
writes) or degrades to "no data" (engine reads).
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Optional

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


class BaseRepository:
    """Shared SQL execution helpers for all repository classes.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        logger.debug("SQL: %s | params: %s", " ".join(sql.split()), params)
        return self.conn.execute(sql, params)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def count_rows(self, table: str, where: str = "", params: Params = ()) -> int:
        """Return ``COUNT(*)`` for ``table`` with an optional WHERE clause."""
        sql = f"SELECT COUNT(*) AS n FROM {table}"
        if where:
            sql += f" WHERE {where}"
        row = self.fetchone(sql + ";", params)
        assert row is not None
        return int(row["n"])


def dump_json(value: Any) -> str:
    """Serialize a list/dict column value (pydantic models via ``model_dump``)."""
    return json.dumps(value, default=lambda o: o.model_dump(mode="json"))


def load_json(raw: Optional[str], default: Any = None) -> Any:
    """Deserialize a JSON column; ``NULL``/empty yields ``default`` (or ``[]``)."""
    if not raw:
        return [] if default is None else default
    return json.loads(raw)

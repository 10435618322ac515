"""
Opening the SQLite history store.

Two entry points:

``open_connection(db_path)``
    Returns a configured connection that the caller owns. Row access is by
    column name (``sqlite3.Row``), foreign keys are enforced, lock waits
    honour ``busy_timeout_ms``, and file databases get WAL journaling when
    asked for so a CLI read can overlap a write. Concurrent writers are
    serialized by SQLite; the last upsert wins.

``get_connection(db_path)``
    Wraps ``open_connection`` in one transaction: commit when the block
    finishes, roll back when it raises, close either way. Every CLI
    command opens the store this way::

        with get_connection("data/db/elaro.db") as conn:
            history = SQLiteHistoryRepository(conn)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def _is_file_db(db_path: str) -> bool:
    # "" opens a private temporary database; neither it nor :memory: has a directory or a WAL file.
    return db_path not in (MEMORY_DB, "")


def open_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> sqlite3.Connection:
    """Open ``db_path`` and apply the store's pragmas.

    Parent directories of a file database are created first.

    Raises:
        sqlite3.OperationalError: If the file cannot be opened.
    """
    if _is_file_db(db_path):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        if wal_mode and _is_file_db(db_path):
            mode = conn.execute("PRAGMA journal_mode = WAL;").fetchone()[0]
            if str(mode).lower() != "wal":
                logger.warning("WAL not available for %s; journal_mode is %s.", db_path, mode)
    except sqlite3.Error:
        conn.close()
        raise

    logger.debug("Opened %s (wal=%s, busy_timeout=%dms)", db_path, wal_mode, busy_timeout_ms)
    return conn


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield an open connection scoped to one transaction.

    Raises:
        sqlite3.OperationalError: If the database cannot be opened, or stays
            locked longer than ``busy_timeout_ms``.
    """
    conn = open_connection(db_path, wal_mode=wal_mode, busy_timeout_ms=busy_timeout_ms)
    try:
        yield conn
    except BaseException:
        conn.rollback()
        logger.debug("Rolled back %s", db_path)
        raise
    else:
        conn.commit()
    finally:
        conn.close()

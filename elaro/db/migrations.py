"""
Sequential schema migrations for the history store.

Not a migration framework (no down migrations, no Alembic):

  1. A ``schema_versions`` table records applied migration ids.
  2. Each migration is a function taking a ``sqlite3.Connection``.
  3. ``run_migrations()`` applies, in registry order, every migration not
     yet recorded.

The base tables come from ``schema.apply_schema()``, which must run first.
Migrations only carry incremental changes made after the base schema was
published, and each one checks the live table before altering it so a
database created by a newer ``apply_schema()`` is left alone.

Adding a migration:
  1. Write ``migration_NNNN_description(conn)`` below.
  2. Register it in ``MIGRATIONS`` under ``"NNNN_description"``.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable

from elaro.db.schema import apply_schema, get_table_columns

logger = logging.getLogger(__name__)

MigrationFn = Callable[[sqlite3.Connection], None]


# ── Migration functions ────────────────────────────────────────────────────────

def migration_0001_baseline(conn: sqlite3.Connection) -> None:
    """Anchor the version history at the base schema (no DDL)."""


def migration_0002_instance_mood(conn: sqlite3.Connection) -> None:
    """Add the optional free-text ``mood`` column to ``action_instances``."""
    if "mood" not in get_table_columns(conn, "action_instances"):
        conn.execute("ALTER TABLE action_instances ADD COLUMN mood TEXT;")
    conn.commit()


def migration_0003_summary_week_index(conn: sqlite3.Connection) -> None:
    """Index weekly summaries for newest-first listing per focus."""
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_summaries_focus_week
            ON weekly_summaries(focus_id, week_start DESC);
    """)
    conn.commit()


# ── Registry ──────────────────────────────────────────────────────────────────

MIGRATIONS: dict[str, tuple[MigrationFn, str]] = {
    "0001_baseline": (
        migration_0001_baseline,
        "Baseline: tables from apply_schema",
    ),
    "0002_instance_mood": (
        migration_0002_instance_mood,
        "Add mood column to action_instances",
    ),
    "0003_summary_week_index": (
        migration_0003_summary_week_index,
        "Add (focus_id, week_start) index to weekly_summaries",
    ),
}


_VERSION_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS schema_versions (
    version_id  TEXT NOT NULL PRIMARY KEY,
    description TEXT,
    applied_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""


def pending_migrations(conn: sqlite3.Connection) -> list[str]:
    """Return registered migration ids not yet recorded, in registry order."""
    conn.execute(_VERSION_TABLE_DDL)
    done = {r[0] for r in conn.execute("SELECT version_id FROM schema_versions;")}
    return [vid for vid in MIGRATIONS if vid not in done]


def _record(conn: sqlite3.Connection, version_id: str) -> None:
    conn.execute(
        "INSERT INTO schema_versions (version_id, description) VALUES (?, ?);",
        (version_id, MIGRATIONS[version_id][1]),
    )
    conn.commit()


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply pending migrations in registry order.

    A failing migration is rolled back and re-raised; migrations before it
    stay recorded.

    Returns:
        Number of migrations applied by this call (0 when up to date).
    """
    todo = pending_migrations(conn)
    if not todo:
        logger.debug("Schema is up to date (%d migrations recorded).", len(MIGRATIONS))
        return 0

    for version_id in todo:
        fn, description = MIGRATIONS[version_id]
        logger.info("Migrating %s (%s)", version_id, description)
        try:
            fn(conn)
        except sqlite3.Error:
            conn.rollback()
            logger.exception("Migration %s failed; database left at the previous version.", version_id)
            raise
        _record(conn, version_id)

    logger.info("%d migration(s) applied.", len(todo))
    return len(todo)


def prepare_database(conn: sqlite3.Connection) -> int:
    """Apply the base schema and any pending migrations; return migrations applied."""
    apply_schema(conn)
    return run_migrations(conn)

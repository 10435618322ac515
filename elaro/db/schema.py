"""
SQLite schema DDL for the history store.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent:
safe to call on an already-initialized database (e.g. at every CLI start
or in tests). Incremental column changes live in ``migrations.py``.

Table creation order respects foreign key dependencies:
  1. focus_areas        (no FKs)
  2. action_templates   (no FKs; focus_id is a soft reference so content
                         can be imported before focus areas are configured)
  3. action_instances   (→ action_templates)
  4. weekly_summaries   (no FKs; UNIQUE(focus_id, week_start))

JSON columns
------------
List-valued fields (tags, variants, contraindications, pinned titles,
building blocks) are stored as JSON text and decoded by the repositories.

Timestamps
----------
All timestamp columns hold UTC ``YYYY-MM-DDTHH:MM:SSZ`` strings, so range
predicates compare lexically in chronological order.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_FOCUS_AREAS = """
CREATE TABLE IF NOT EXISTS focus_areas (
    focus_id                  TEXT    PRIMARY KEY,
    name                      TEXT    NOT NULL,
    active                    INTEGER NOT NULL DEFAULT 1,
    started_at                TEXT,
    pinned_micro_skill_titles TEXT    NOT NULL DEFAULT '[]',
    building_blocks           TEXT    NOT NULL DEFAULT '[]',
    created_at                TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at                TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_ACTION_TEMPLATES = """
CREATE TABLE IF NOT EXISTS action_templates (
    template_id       TEXT    PRIMARY KEY,
    focus_id          TEXT    NOT NULL,
    title             TEXT    NOT NULL,
    rationale_line    TEXT    NOT NULL DEFAULT '',
    tags              TEXT    NOT NULL DEFAULT '[]',
    difficulty        INTEGER NOT NULL DEFAULT 1 CHECK (difficulty BETWEEN 1 AND 5),
    variants          TEXT    NOT NULL DEFAULT '[]',
    contraindications TEXT    NOT NULL DEFAULT '[]',
    content_version   INTEGER NOT NULL DEFAULT 1,
    created_at        TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at        TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_ACTION_TEMPLATES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_templates_focus
    ON action_templates(focus_id);
"""

_DDL_ACTION_INSTANCES = """
CREATE TABLE IF NOT EXISTS action_instances (
    instance_id      TEXT    PRIMARY KEY,
    logged_at        TEXT    NOT NULL,
    focus_id         TEXT    NOT NULL,
    template_id      TEXT    NOT NULL REFERENCES action_templates(template_id),
    variant_duration INTEGER NOT NULL,
    status           TEXT    NOT NULL CHECK (status IN ('done', 'snoozed', 'skipped')),
    felt_difficulty  TEXT    CHECK (felt_difficulty IN ('light', 'ok', 'hard')),
    note             TEXT,
    created_at       TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_ACTION_INSTANCES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_instances_time
    ON action_instances(logged_at);
CREATE INDEX IF NOT EXISTS idx_instances_focus_time
    ON action_instances(focus_id, logged_at);
"""

_DDL_WEEKLY_SUMMARIES = """
CREATE TABLE IF NOT EXISTS weekly_summaries (
    summary_id      TEXT    PRIMARY KEY,
    week_start      TEXT    NOT NULL,
    focus_id        TEXT    NOT NULL,
    win_text        TEXT    NOT NULL,
    hard_text       TEXT    NOT NULL,
    suggested_tweak TEXT    NOT NULL CHECK (suggested_tweak IN ('keep', 'scale_down', 'scale_up')),
    created_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    UNIQUE (focus_id, week_start)
);
"""

_ALL_DDL: list[str] = [
    _DDL_FOCUS_AREAS,
    _DDL_ACTION_TEMPLATES,
    _DDL_ACTION_TEMPLATES_INDEXES,
    _DDL_ACTION_INSTANCES,
    _DDL_ACTION_INSTANCES_INDEXES,
    _DDL_WEEKLY_SUMMARIES,
]

ALL_TABLE_NAMES = [
    "focus_areas",
    "action_templates",
    "action_instances",
    "weekly_summaries",
]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent — every statement carries an ``IF NOT EXISTS`` guard.

    Args:
        conn: An open ``sqlite3.Connection`` (FK enforcement should be ON).
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return the sorted names of tables present in the database."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    """Return the column names of ``table`` (empty set if it does not exist)."""
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table});").fetchall()}

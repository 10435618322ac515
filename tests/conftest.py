"""
Shared pytest fixtures for the Elaro test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema and migrations applied. Created anew for each test.
  - ``sqlite_history``: ``SQLiteHistoryRepository`` over ``in_memory_db``
    with the default focus areas present.
  - ``memory_history``: a list-backed ``HistoryRepository`` for engine tests.
  - ``failing_history``: a repository whose every call raises.
  - ``make_template`` / ``make_instance``: domain object factories.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator, Optional

import pytest

from elaro.db.connection import MEMORY_DB, open_connection
from elaro.db.migrations import prepare_database
from elaro.history.repository import DateRange, HistoryRepository
from elaro.history.sqlite_store import SQLiteHistoryRepository
from elaro.models.action import ActionInstance, ActionTemplate, TemplateVariant
from elaro.models.focus import FocusArea
from elaro.models.summary import WeeklySummary
from elaro.taxonomy.action_taxonomy import ActionStatus, FeltDifficulty

# Wednesday; the Monday-based week starts 2026-10-12.
NOW = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)


# ── In-memory repositories ────────────────────────────────────────────────────

class InMemoryHistory(HistoryRepository):
    """List-backed ``HistoryRepository`` with the same ordering guarantees as SQLite."""

    def __init__(self) -> None:
        self.templates: list[ActionTemplate] = []
        self.instances: list[ActionInstance] = []
        self.focuses: dict[str, FocusArea] = {}
        self.summaries: dict[tuple[str, datetime], WeeklySummary] = {}
        self.calls = 0

    def fetch_action_templates(self, focus_id: str) -> list[ActionTemplate]:
        self.calls += 1
        return [t for t in self.templates if t.focus_id == focus_id]

    def fetch_action_instances(
        self,
        date_range: DateRange,
        focus_id: Optional[str] = None,
    ) -> list[ActionInstance]:
        self.calls += 1
        hits = [
            i for i in self.instances
            if date_range.contains(i.date) and (focus_id is None or i.focus_id == focus_id)
        ]
        return sorted(hits, key=lambda i: i.date)

    def fetch_focus_area(self, focus_id: str) -> Optional[FocusArea]:
        self.calls += 1
        return self.focuses.get(focus_id)

    def fetch_weekly_summaries(self, focus_id: str, limit: int = 10) -> list[WeeklySummary]:
        self.calls += 1
        mine = [s for s in self.summaries.values() if s.focus_id == focus_id]
        return sorted(mine, key=lambda s: s.week_start, reverse=True)[:limit]

    def save_action_instance(self, instance: ActionInstance) -> None:
        if all(i.id != instance.id for i in self.instances):
            self.instances.append(instance)

    def save_weekly_summary(self, summary: WeeklySummary) -> None:
        self.summaries[(summary.focus_id, summary.week_start)] = summary


class FailingHistory(HistoryRepository):
    """Every call fails the way a broken SQLite file would."""

    def _fail(self, *args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    fetch_action_templates = _fail
    fetch_action_instances = _fail
    fetch_focus_area = _fail
    fetch_weekly_summaries = _fail
    save_action_instance = _fail
    save_weekly_summary = _fail


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with schema + migrations applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = open_connection(MEMORY_DB)
    prepare_database(conn)
    yield conn
    conn.close()


@pytest.fixture
def sqlite_history(in_memory_db: sqlite3.Connection) -> SQLiteHistoryRepository:
    history = SQLiteHistoryRepository(in_memory_db)
    history.focuses.upsert(FocusArea(id="independence", name="Independence"))
    history.focuses.upsert(FocusArea(id="emotion_skills", name="Emotion Skills"))
    in_memory_db.commit()
    return history


@pytest.fixture
def memory_history() -> InMemoryHistory:
    return InMemoryHistory()


@pytest.fixture
def failing_history() -> FailingHistory:
    return FailingHistory()


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def make_template() -> Callable[..., ActionTemplate]:
    """Factory for ``ActionTemplate`` with one variant per duration given."""

    def _make(
        template_id: str = "ind-try-first",
        focus_id: str = "independence",
        title: str = "Try first, ask for help after",
        tags: tuple[str, ...] = ("initiative",),
        durations: tuple[int, ...] = (5, 10),
        contraindications: tuple[str, ...] = (),
        difficulty: int = 2,
        content_version: int = 1,
    ) -> ActionTemplate:
        return ActionTemplate(
            id=template_id,
            focus_id=focus_id,
            title=title,
            rationale_line="A short wait invites initiative.",
            tags=list(tags),
            difficulty=difficulty,
            variants=[
                TemplateVariant(duration_minutes=d, steps=[f"Step for {d} minutes"])
                for d in durations
            ],
            contraindications=list(contraindications),
            content_version=content_version,
        )

    return _make


@pytest.fixture
def make_instance() -> Callable[..., ActionInstance]:
    """Factory for ``ActionInstance``; ``hours_ago`` is measured from ``NOW``."""
    counter = {"n": 0}

    def _make(
        template_id: str = "ind-try-first",
        focus_id: str = "independence",
        status: ActionStatus = ActionStatus.DONE,
        minutes: int = 5,
        hours_ago: float = 1.0,
        felt: Optional[FeltDifficulty] = None,
        note: Optional[str] = None,
        at: Optional[datetime] = None,
        instance_id: Optional[str] = None,
    ) -> ActionInstance:
        counter["n"] += 1
        return ActionInstance(
            id=instance_id or f"inst-{counter['n']}",
            date=at if at is not None else NOW - timedelta(hours=hours_ago),
            focus_id=focus_id,
            template_id=template_id,
            variant_duration=minutes,
            status=status,
            felt_difficulty=felt,
            note=note,
        )

    return _make


@pytest.fixture
def now() -> datetime:
    return NOW

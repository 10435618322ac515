"""
SQLite implementation of the history repository contract.

Composes the table repositories over one connection. Writes commit
immediately so a fire-and-forget save is durable once it returns; storage
errors propagate (wrap with ``ResilientHistory`` for engine use).
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from elaro.db.repositories.focus_repo import FocusAreaRepository
from elaro.db.repositories.instance_repo import ActionInstanceRepository
from elaro.db.repositories.summary_repo import WeeklySummaryRepository
from elaro.db.repositories.template_repo import ActionTemplateRepository
from elaro.history.repository import DateRange, HistoryRepository
from elaro.models.action import ActionInstance, ActionTemplate
from elaro.models.focus import FocusArea
from elaro.models.summary import WeeklySummary

logger = logging.getLogger(__name__)


class SQLiteHistoryRepository(HistoryRepository):
    """``HistoryRepository`` over an open SQLite connection.

    Attributes:
        templates: Catalog table access.
        instances: History table access.
        focuses:   Focus area table access.
        summaries: Weekly summary table access.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.templates = ActionTemplateRepository(conn)
        self.instances = ActionInstanceRepository(conn)
        self.focuses = FocusAreaRepository(conn)
        self.summaries = WeeklySummaryRepository(conn)

    def fetch_action_templates(self, focus_id: str) -> list[ActionTemplate]:
        return self.templates.get_by_focus(focus_id)

    def fetch_action_instances(
        self,
        date_range: DateRange,
        focus_id: Optional[str] = None,
    ) -> list[ActionInstance]:
        return self.instances.get_in_range(date_range.start, date_range.end, focus_id)

    def fetch_focus_area(self, focus_id: str) -> Optional[FocusArea]:
        return self.focuses.get_by_id(focus_id)

    def fetch_weekly_summaries(self, focus_id: str, limit: int = 10) -> list[WeeklySummary]:
        return self.summaries.get_for_focus(focus_id, limit)

    def save_action_instance(self, instance: ActionInstance) -> None:
        if self.instances.insert(instance):
            logger.info("Logged %s for %s (%s)", instance.status, instance.template_id, instance.id)
        self.conn.commit()

    def save_weekly_summary(self, summary: WeeklySummary) -> None:
        self.summaries.upsert(summary)
        self.conn.commit()
        logger.info(
            "Saved weekly summary %s: %s", summary.id, summary.suggested_tweak
        )

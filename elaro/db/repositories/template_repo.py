"""
Repository for action templates (the content catalog).
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from elaro.db.repositories.base import BaseRepository, dump_json, load_json
from elaro.models.action import ActionTemplate, TemplateVariant

logger = logging.getLogger(__name__)


class ActionTemplateRepository(BaseRepository):
    """Read/write access to the ``action_templates`` table.

    Catalog order is insertion order: an upsert that updates an existing row
    keeps that row's original position.
    """

    def upsert(self, template: ActionTemplate) -> None:
        """Insert a template or overwrite the existing row with the same id."""
        self.execute(
            """
            INSERT INTO action_templates (
                template_id, focus_id, title, rationale_line, tags, difficulty,
                variants, contraindications, content_version
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(template_id) DO UPDATE SET
                focus_id          = excluded.focus_id,
                title             = excluded.title,
                rationale_line    = excluded.rationale_line,
                tags              = excluded.tags,
                difficulty        = excluded.difficulty,
                variants          = excluded.variants,
                contraindications = excluded.contraindications,
                content_version   = excluded.content_version,
                updated_at        = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');
            """,
            (
                template.id,
                template.focus_id,
                template.title,
                template.rationale_line,
                dump_json(template.tags),
                template.difficulty,
                dump_json(template.variants),
                dump_json(template.contraindications),
                template.content_version,
            ),
        )

    def get_by_id(self, template_id: str) -> Optional[ActionTemplate]:
        row = self.fetchone(
            "SELECT * FROM action_templates WHERE template_id = ?;", (template_id,)
        )
        return _row_to_template(row) if row else None

    def get_by_focus(self, focus_id: str) -> list[ActionTemplate]:
        """Return all templates for ``focus_id`` in catalog order."""
        rows = self.fetchall(
            "SELECT * FROM action_templates WHERE focus_id = ? ORDER BY rowid;",
            (focus_id,),
        )
        return [_row_to_template(r) for r in rows]

    def get_all(self) -> list[ActionTemplate]:
        rows = self.fetchall("SELECT * FROM action_templates ORDER BY rowid;")
        return [_row_to_template(r) for r in rows]

    def content_versions(self) -> dict[str, int]:
        """Return ``template_id → content_version`` for the whole catalog."""
        rows = self.fetchall("SELECT template_id, content_version FROM action_templates;")
        return {r["template_id"]: int(r["content_version"]) for r in rows}

    def count(self) -> int:
        return self.count_rows("action_templates")


def _row_to_template(row: sqlite3.Row) -> ActionTemplate:
    return ActionTemplate(
        id=row["template_id"],
        focus_id=row["focus_id"],
        title=row["title"],
        rationale_line=row["rationale_line"],
        tags=load_json(row["tags"]),
        difficulty=row["difficulty"],
        variants=[TemplateVariant(**v) for v in load_json(row["variants"])],
        contraindications=load_json(row["contraindications"]),
        content_version=row["content_version"],
    )

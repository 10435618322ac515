"""
Seed content loader: actions JSON → SQLite.

Responsibilities
----------------
1. Load ``config/content/actions_seed.json`` (or any catalog JSON) and
   validate it.
2. Create the default focus areas (``independence``, ``emotion_skills``)
   if they are missing. Existing focus rows are never modified.
3. Insert new templates; update an existing template only when the
   incoming content version is strictly newer than the stored one.

Document format
---------------
    {
      "contentVersion": 2,                      # optional, default 1
      "actions": [
        {
          "id": "ind-try-first",
          "focusId": "independence",
          "title": "Try first, ask for help after",
          "whyLine": "A short wait invites initiative.",
          "tags": ["initiative"],
          "difficulty": 2,
          "variants": [{"durationMinutes": 5, "steps": ["..."]}],
          "contraindications": ["skip_if_dysregulated"],   # optional
          "contentVersion": 3                              # optional override
        }
      ]
    }

Validation rules
----------------
- Duplicate action ids are rejected.
- Every required key must be present.
- ``difficulty`` must be in 1..5.
- Every ``durationMinutes`` must be one of 5 / 10 / 20.
- Every action needs at least one variant.

Usage
-----
    from elaro.content.seed_loader import import_content

    result = import_content(conn, Path("config/content/actions_seed.json"))
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from elaro.db.repositories.focus_repo import FocusAreaRepository
from elaro.db.repositories.template_repo import ActionTemplateRepository
from elaro.models.action import ActionTemplate, TemplateVariant
from elaro.models.focus import FocusArea
from elaro.taxonomy.action_taxonomy import DEFAULT_FOCUS_NAMES, DURATION_OPTIONS
from elaro.utils.time_utils import utcnow

log = logging.getLogger(__name__)

_REQUIRED_KEYS: tuple[str, ...] = (
    "id", "focusId", "title", "whyLine", "tags", "difficulty", "variants",
)


@dataclass
class ImportResult:
    """Counts from one content import.

    Attributes:
        content_version: File-level content version.
        focuses_created: Default focus areas inserted.
        inserted:        New templates.
        updated:         Existing templates replaced by a newer version.
        unchanged:       Existing templates left alone (same or older version).
    """

    content_version: int
    focuses_created: int = 0
    inserted:        int = 0
    updated:         int = 0
    unchanged:       int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.updated + self.unchanged


# ── Validation ────────────────────────────────────────────────────────────────

def _validate_actions(records: list[dict[str, Any]]) -> None:
    """Raise ValueError for any schema violations in the actions list."""
    seen_ids: set[str] = set()
    for i, rec in enumerate(records):
        if not isinstance(rec, dict):
            raise ValueError(f"Action at index {i} is not an object.")
        missing = [k for k in _REQUIRED_KEYS if k not in rec]
        if missing:
            raise ValueError(f"Action at index {i} is missing {missing}.")

        action_id = rec["id"]
        if action_id in seen_ids:
            raise ValueError(f"Duplicate action id '{action_id}' at index {i}.")
        seen_ids.add(action_id)

        difficulty = rec["difficulty"]
        if not isinstance(difficulty, int) or not 1 <= difficulty <= 5:
            raise ValueError(
                f"Action '{action_id}': difficulty must be an integer in 1..5, got {difficulty!r}."
            )

        variants = rec["variants"]
        if not isinstance(variants, list) or not variants:
            raise ValueError(f"Action '{action_id}' has no variants.")
        for variant in variants:
            minutes = variant.get("durationMinutes") if isinstance(variant, dict) else None
            if minutes not in DURATION_OPTIONS:
                raise ValueError(
                    f"Action '{action_id}' has invalid durationMinutes {minutes!r}. "
                    f"Valid values: {list(DURATION_OPTIONS)}"
                )


def parse_document(document: dict[str, Any]) -> tuple[int, list[ActionTemplate]]:
    """Validate a catalog document and build its templates.

    Returns:
        ``(file_content_version, templates)`` with templates in file order.

    Raises:
        ValueError: On any schema violation (including pydantic
            ``ValidationError``, which subclasses ``ValueError``).
    """
    if not isinstance(document, dict) or not isinstance(document.get("actions"), list):
        raise ValueError("Content document must be an object with an 'actions' list.")

    file_version = document.get("contentVersion", 1)
    if not isinstance(file_version, int) or file_version < 1:
        raise ValueError(f"contentVersion must be a positive integer, got {file_version!r}.")

    records: list[dict[str, Any]] = document["actions"]
    _validate_actions(records)

    templates = [
        ActionTemplate(
            id=rec["id"],
            focus_id=rec["focusId"],
            title=rec["title"],
            rationale_line=rec["whyLine"],
            tags=rec["tags"],
            difficulty=rec["difficulty"],
            variants=[
                TemplateVariant(duration_minutes=v["durationMinutes"], steps=v.get("steps", []))
                for v in rec["variants"]
            ],
            contraindications=rec.get("contraindications") or [],
            content_version=rec.get("contentVersion") or file_version,
        )
        for rec in records
    ]
    return file_version, templates


# ── DB helpers ────────────────────────────────────────────────────────────────

def ensure_default_focuses(
    conn: sqlite3.Connection,
    focus_names: Optional[dict[str, str]] = None,
) -> int:
    """Insert any missing default focus area. Returns count created."""
    repo = FocusAreaRepository(conn)
    now = utcnow()
    created = 0
    for focus_id, name in (focus_names or DEFAULT_FOCUS_NAMES).items():
        if repo.insert_if_missing(FocusArea(id=focus_id, name=name, active=True, started_at=now)):
            log.info("Created focus area '%s' (%s).", focus_id, name)
            created += 1
    return created


def upsert_templates(
    conn: sqlite3.Connection,
    templates: list[ActionTemplate],
    result: ImportResult,
) -> ImportResult:
    """Insert new templates and replace stored ones with a strictly newer version."""
    repo = ActionTemplateRepository(conn)
    stored = repo.content_versions()
    for template in templates:
        existing = stored.get(template.id)
        if existing is None:
            repo.upsert(template)
            result.inserted += 1
        elif existing < template.content_version:
            repo.upsert(template)
            result.updated += 1
        else:
            log.debug(
                "Keeping '%s' at version %d (incoming %d).",
                template.id, existing, template.content_version,
            )
            result.unchanged += 1
    return result


# ── Top-level entry point ─────────────────────────────────────────────────────

def import_content(
    conn: sqlite3.Connection,
    path: Path,
    focus_names: Optional[dict[str, str]] = None,
) -> ImportResult:
    """Load, validate, and upsert a content catalog.

    Args:
        conn:        Open SQLite connection with the schema applied.
        path:        Catalog JSON file.
        focus_names: Default focus areas to ensure (defaults to the built-ins).

    Returns:
        ``ImportResult`` with per-outcome counts.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the document fails validation. Nothing is written.
    """
    log.info("Loading content from %s", path)
    document = json.loads(Path(path).read_text(encoding="utf-8"))
    file_version, templates = parse_document(document)

    result = ImportResult(content_version=file_version)
    result.focuses_created = ensure_default_focuses(conn, focus_names)
    upsert_templates(conn, templates, result)
    conn.commit()

    log.info(
        "Imported content v%d: %d inserted, %d updated, %d unchanged.",
        file_version, result.inserted, result.updated, result.unchanged,
    )
    return result

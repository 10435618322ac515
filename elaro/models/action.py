"""
Action catalog and action history models.

``ActionTemplate`` is a catalog entry (what the caregiver could do);
``ActionInstance`` is a historical event (what the caregiver logged).
Templates are owned by the content catalog and only change when a newer
``content_version`` is imported. Instances are append-only: created once
when an outcome is logged and never mutated afterwards.

Timestamps
----------
``ActionInstance.date`` is always timezone-aware. Naive datetimes are
interpreted as UTC at validation time so that range queries against the
store compare like with like.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from elaro.taxonomy.action_taxonomy import (
    DURATION_OPTIONS,
    ActionStatus,
    FeltDifficulty,
)


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


class TemplateVariant(BaseModel):
    """One duration option of an action template.

    Attributes:
        duration_minutes: One of ``DURATION_OPTIONS`` (5 / 10 / 20).
        steps: Ordered instructions for this variant.
    """

    model_config = ConfigDict(frozen=True)

    duration_minutes: int
    steps: list[str] = Field(default_factory=list)

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v not in DURATION_OPTIONS:
            raise ValueError(
                f"duration_minutes must be one of {list(DURATION_OPTIONS)}, got {v}."
            )
        return v


class ActionTemplate(BaseModel):
    """A catalog entry describing one behavioural micro-practice.

    Attributes:
        id: Stable identifier from the content file.
        focus_id: Owning focus area id, e.g. ``"independence"``.
        title: Short display title; matched against pinned micro-skills.
        rationale_line: One-line "why this helps" copy.
        tags: Skill tags used for per-tag success rates (de-duplicated,
            order preserved).
        difficulty: 1 (easiest) – 5 (hardest).
        variants: Duration variants in catalog order.
        contraindications: Situations in which the template should be hidden,
            e.g. ``"skip_if_dysregulated"``.
        content_version: Catalog version that last wrote this template.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    focus_id: str
    title: str
    rationale_line: str = ""
    tags: list[str] = Field(default_factory=list)
    difficulty: int = 1
    variants: list[TemplateVariant] = Field(default_factory=list)
    contraindications: list[str] = Field(default_factory=list)
    content_version: int = 1

    @field_validator("tags", "contraindications")
    @classmethod
    def validate_unique(cls, v: list[str]) -> list[str]:
        return _dedupe(v)

    @field_validator("difficulty")
    @classmethod
    def validate_difficulty(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError(f"difficulty must be in 1..5, got {v}.")
        return v

    @field_validator("content_version")
    @classmethod
    def validate_content_version(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"content_version must be >= 1, got {v}.")
        return v

    @property
    def durations(self) -> list[int]:
        """Variant durations in listed order."""
        return [variant.duration_minutes for variant in self.variants]

    def variant_for(self, duration_minutes: int) -> Optional[TemplateVariant]:
        """Return the variant with ``duration_minutes``, or ``None``."""
        for variant in self.variants:
            if variant.duration_minutes == duration_minutes:
                return variant
        return None


class ActionInstance(BaseModel):
    """A logged outcome for one action on one occasion.

    Attributes:
        id: Unique instance id (saves are idempotent on this key).
        date: When the outcome was logged (timezone-aware; naive → UTC).
        focus_id: Focus area the action belongs to.
        template_id: Reference to ``ActionTemplate.id``.
        variant_duration: Duration of the variant that was attempted.
        status: Outcome from ``ActionStatus``.
        felt_difficulty: Optional caregiver rating.
        mood: Optional free-text mood tag.
        note: Optional free-text note; scanned for stress keywords.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    date: datetime
    focus_id: str
    template_id: str
    variant_duration: int
    status: ActionStatus
    felt_difficulty: Optional[FeltDifficulty] = None
    mood: Optional[str] = None
    note: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("variant_duration")
    @classmethod
    def validate_variant_duration(cls, v: int) -> int:
        if v not in DURATION_OPTIONS:
            raise ValueError(
                f"variant_duration must be one of {list(DURATION_OPTIONS)}, got {v}."
            )
        return v

    @property
    def is_done(self) -> bool:
        return self.status is ActionStatus.DONE

    def check_against(self, template: ActionTemplate) -> None:
        """Verify this instance is consistent with the template it references.

        Raises:
            ValueError: If the template id, focus, or duration disagree.
        """
        if template.id != self.template_id:
            raise ValueError(
                f"Instance '{self.id}' references template '{self.template_id}', "
                f"not '{template.id}'."
            )
        if template.focus_id != self.focus_id:
            raise ValueError(
                f"Instance '{self.id}' is logged under focus '{self.focus_id}' but "
                f"template '{template.id}' belongs to '{template.focus_id}'."
            )
        if self.variant_duration not in template.durations:
            raise ValueError(
                f"Instance '{self.id}' uses a {self.variant_duration}-minute variant; "
                f"template '{template.id}' offers {template.durations}."
            )


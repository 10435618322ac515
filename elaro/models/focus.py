"""
Focus area model.

A ``FocusArea`` is a developmental theme the caregiver is working on, e.g.
``"independence"`` or ``"emotion_skills"``. Only ``pinned_micro_skill_titles``
feeds the recommender (pinned titles boost matching templates). The three
``building_blocks`` are plan entries owned by the planning UI and carried
here so the store round-trips them unchanged.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from elaro.taxonomy.action_taxonomy import BuildingBlockType


class BuildingBlock(BaseModel):
    """One categorized plan entry (micro-skill, ritual, or support)."""

    model_config = ConfigDict(frozen=True)

    type: BuildingBlockType
    title: str
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)


class FocusArea(BaseModel):
    """A focus area and the configuration that influences scoring.

    Attributes:
        id: Stable identifier, e.g. ``"independence"``.
        name: Display name, e.g. ``"Independence"``.
        active: Whether the focus is currently being worked on.
        started_at: When the focus was (first) activated.
        pinned_micro_skill_titles: Titles whose case-insensitive presence in a
            template title raises that template's focus-match score.
        building_blocks: Plan entries; at most three when configured.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    active: bool = True
    started_at: Optional[datetime] = None
    pinned_micro_skill_titles: list[str] = Field(default_factory=list)
    building_blocks: list[BuildingBlock] = Field(default_factory=list)

    @field_validator("started_at")
    @classmethod
    def validate_started_at_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("building_blocks")
    @classmethod
    def validate_block_count(cls, v: list[BuildingBlock]) -> list[BuildingBlock]:
        if len(v) > 3:
            raise ValueError(f"A focus area holds at most 3 building blocks, got {len(v)}.")
        return v

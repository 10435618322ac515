"""
Weekly summary record — the persisted outcome of a weekly review.

One logical record exists per ``(focus_id, week_start)``. Confirming a
tweak for a week that already has a summary supersedes the earlier record
(the store upserts on that key); the ``id`` is derived from the same pair
so it is stable across re-confirmations.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator

from elaro.taxonomy.action_taxonomy import TweakDecision


def summary_id_for(focus_id: str, week_start: datetime) -> str:
    """Return the stable summary id for ``(focus_id, week_start)``."""
    return f"{focus_id}-{int(week_start.timestamp())}"


class WeeklySummary(BaseModel):
    """A confirmed weekly decision with its win / hard copy.

    Attributes:
        id: ``"{focus_id}-{epoch seconds of week_start}"``.
        week_start: Start of the week the decision applies to.
        focus_id: Focus area reviewed.
        win_text: Highlight of the week.
        hard_text: What felt hard during the week.
        suggested_tweak: The confirmed ``TweakDecision``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    week_start: datetime
    focus_id: str
    win_text: str
    hard_text: str
    suggested_tweak: TweakDecision

    @field_validator("week_start")
    @classmethod
    def validate_week_start_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

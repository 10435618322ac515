"""
Closed vocabularies for caregiver action history.

Every string-valued field that the engines branch on is modelled here as a
``StrEnum`` so that typos fail at validation time instead of silently
falling through a comparison:

  - ``ActionStatus``      — outcome logged for one action instance.
  - ``FeltDifficulty``    — caregiver's optional difficulty rating.
  - ``TweakDecision``     — weekly keep / scale-down / scale-up decision.
  - ``NoveltyTolerance``  — coarse appetite for new templates.
  - ``BuildingBlockType`` — categories of focus-area plan entries.

Usage example::

    from elaro.taxonomy.action_taxonomy import ActionStatus, TweakDecision

    if instance.status is ActionStatus.DONE:
        ...

This module has NO imports from any other ``elaro`` package.
"""

from enum import StrEnum


class ActionStatus(StrEnum):
    """Outcome of a single logged action."""

    DONE = "done"
    """Caregiver completed the action."""

    SNOOZED = "snoozed"
    """Deferred to later; counts as an attempt but not a completion."""

    SKIPPED = "skipped"
    """Explicitly not done."""


class FeltDifficulty(StrEnum):
    """How hard the action felt, as reported by the caregiver."""

    LIGHT = "light"
    OK = "ok"
    HARD = "hard"


class TweakDecision(StrEnum):
    """Weekly adaptation decision for the difficulty/duration of future actions."""

    KEEP = "keep"
    SCALE_DOWN = "scale_down"
    SCALE_UP = "scale_up"

    @property
    def display_name(self) -> str:
        return _TWEAK_DISPLAY[self]


_TWEAK_DISPLAY: dict[TweakDecision, str] = {
    TweakDecision.KEEP:       "Keep",
    TweakDecision.SCALE_DOWN: "Scale down",
    TweakDecision.SCALE_UP:   "Scale up",
}


class NoveltyTolerance(StrEnum):
    """How readily the family takes on templates they have not done before."""

    LOW = "low"
    MED = "med"
    HIGH = "high"


class BuildingBlockType(StrEnum):
    """Category of a focus-area building block (not used by the recommender)."""

    MICRO_SKILL = "micro_skill"
    RITUAL = "ritual"
    SUPPORT = "support"


# ── Shared constants ──────────────────────────────────────────────────────────

DURATION_OPTIONS: tuple[int, ...] = (5, 10, 20)
"""Allowed ``TemplateVariant.duration_minutes`` values, ascending."""

DEFAULT_STRESS_KEYWORDS: tuple[str, ...] = (
    "overwhelmed", "meltdown", "tears", "frustrated", "angry", "upset",
)
"""Lower-case substrings that mark a note as describing stress."""

SKIP_IF_DYSREGULATED = "skip_if_dysregulated"
"""Contraindication tag: hide the template right after a stressful moment."""

DEFAULT_FOCUS_NAMES: dict[str, str] = {
    "independence":   "Independence",
    "emotion_skills": "Emotion Skills",
}
"""Display names for the built-in focus areas."""

FOCUS_HEADLINES: dict[str, str] = {
    "independence":   "You pick the plan; I'm backup",
    "emotion_skills": "Name your feeling, invite theirs",
}
DEFAULT_HEADLINE = "Try this today…"


def note_mentions_stress(note: str | None, keywords: tuple[str, ...] = DEFAULT_STRESS_KEYWORDS) -> bool:
    """Return ``True`` if ``note`` contains any stress keyword (case-insensitive)."""
    if not note:
        return False
    lowered = note.lower()
    return any(kw in lowered for kw in keywords)

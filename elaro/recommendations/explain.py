"""
ExplainWhyBuilder: one-sentence rationale for a recommendation.

    "Because {when} and {minutes}-minute actions work for you,
     we're offering {phrase} for {focus name} today."

Classification rules
--------------------
when   : hour 5–11 → "mornings", 12–16 → "afternoons", else "evenings".
phrase : friction > 0.4 → "gentle options", else "a small stretch".
name   : display name from the focus-name map; unknown ids → "your focus".
"""

from __future__ import annotations

from typing import Optional

from elaro.taxonomy.action_taxonomy import DEFAULT_FOCUS_NAMES

GENTLE_FRICTION_THRESHOLD = 0.4
UNKNOWN_FOCUS_NAME = "your focus"


def time_of_day_phrase(hour: int) -> str:
    if 5 <= hour <= 11:
        return "mornings"
    if 12 <= hour <= 16:
        return "afternoons"
    return "evenings"


def friction_phrase(friction_index: float) -> str:
    return "gentle options" if friction_index > GENTLE_FRICTION_THRESHOLD else "a small stretch"


class ExplainWhyBuilder:
    """Deterministic rationale builder.

    Args:
        focus_names: ``{focus_id: display name}``; defaults to the built-in
            focus areas.
    """

    def __init__(self, focus_names: Optional[dict[str, str]] = None) -> None:
        self.focus_names = dict(DEFAULT_FOCUS_NAMES if focus_names is None else focus_names)

    def focus_name(self, focus_id: str) -> str:
        return self.focus_names.get(focus_id, UNKNOWN_FOCUS_NAME)

    def build(
        self,
        focus_id: str,
        preferred_duration: int,
        hour: int,
        friction_index: float,
    ) -> str:
        """Compose the rationale sentence.

        Args:
            focus_id:           Focus area being recommended for.
            preferred_duration: Minutes to quote (mode of the chosen variants).
            hour:               Local hour of the request (0–23).
            friction_index:     Recent friction in [0, 1].

        Returns:
            The rationale string.
        """
        return (
            f"Because {time_of_day_phrase(hour)} and {preferred_duration}-minute "
            f"actions work for you, we're offering {friction_phrase(friction_index)} "
            f"for {self.focus_name(focus_id)} today."
        )

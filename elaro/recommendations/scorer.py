"""
Recommendation scoring: converts one action template plus the current
signals into a weighted relevance score with a component breakdown.

Score formula (weighted sum, range -0.10 – 1.10)
-------------------------------------------------
    total = (
        focus_match     * 0.35   # pinned micro-skill match
        + success_prob  * 0.20   # mean per-tag completion rate
        + bandwidth_fit * 0.15   # offers the preferred duration
        + hour_fit      * 0.10   # completion share at this hour
        + novelty_boost * 0.10   # family is open to variety
        + 1.0           * 0.10   # fixed baseline
        - friction      * 0.10   # recent hard / stressful moments
    )

Component explanations
----------------------
focus_match (0.6 | 1.0):
    1.0 when the lower-cased title contains any pinned micro-skill title;
    0.6 otherwise, and 0.6 flat when nothing is pinned.

success_prob (0–1):
    Mean of ``success_rate_by_tag[tag]`` over the template's tags; unseen
    tags count as 0.5, and a template with no tags scores 0.5.

bandwidth_fit (0.5 | 1.0):
    1.0 if any variant lasts exactly the preferred duration.

hour_fit (0–1):
    Heatmap value at the local hour of the request (0.5 when missing).

novelty_boost (0.0 | 0.2):
    0.2 when novelty tolerance is MED or HIGH.

friction (0–1):
    Friction index, clamped to [0, 1] before weighting.

Scores are not clamped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from elaro.models.action import ActionTemplate
from elaro.taxonomy.action_taxonomy import DURATION_OPTIONS, NoveltyTolerance

NEUTRAL_RATE = 0.5
PINNED_MATCH = 1.0
UNPINNED_MATCH = 0.6
NOVELTY_BOOST = 0.2
FALLBACK_DURATION = 5


@dataclass
class ScoreComponents:
    """All components of a template's recommendation score.

    Attributes:
        focus_match:   0.6 or 1.0, pinned micro-skill title match.
        success_prob:  0–1, mean per-tag completion rate.
        bandwidth_fit: 0.5 or 1.0, preferred duration offered.
        hour_fit:      0–1, completion share at the current hour.
        novelty_boost: 0.0 or 0.2, appetite for variety.
        friction:      0–1, recent friction index.
    """

    focus_match:   float
    success_prob:  float
    bandwidth_fit: float
    hour_fit:      float
    novelty_boost: float
    friction:      float

    @property
    def total(self) -> float:
        """Weighted total score.  Range -0.10 – 1.10."""
        return (
            self.focus_match     * 0.35
            + self.success_prob  * 0.20
            + self.bandwidth_fit * 0.15
            + self.hour_fit      * 0.10
            + self.novelty_boost * 0.10
            + 1.0                * 0.10
            - self.friction      * 0.10
        )


def score_focus_match(title: str, pinned_titles: Iterable[str]) -> float:
    pins = [p.lower() for p in pinned_titles if p]
    if not pins:
        return UNPINNED_MATCH
    lowered = title.lower()
    return PINNED_MATCH if any(pin in lowered for pin in pins) else UNPINNED_MATCH


def score_success_prob(tags: list[str], success_rates: dict[str, float]) -> float:
    if not tags:
        return NEUTRAL_RATE
    return sum(success_rates.get(tag, NEUTRAL_RATE) for tag in tags) / len(tags)


def score_novelty_boost(tolerance: NoveltyTolerance) -> float:
    if tolerance in (NoveltyTolerance.MED, NoveltyTolerance.HIGH):
        return NOVELTY_BOOST
    return 0.0


def clamp_duration(minutes: int) -> int:
    """Return ``minutes`` if it is an allowed duration, else 5."""
    return minutes if minutes in DURATION_OPTIONS else FALLBACK_DURATION


def compute_score(
    template:           ActionTemplate,
    success_rates:      dict[str, float],
    preferred_duration: int,
    hour_fit:           float,
    novelty:            NoveltyTolerance,
    friction:           float,
    pinned_titles:      Iterable[str] = (),
) -> ScoreComponents:
    """Compute all score components for one candidate template.

    Args:
        template:           Candidate action template.
        success_rates:      ``success_rate_by_tag`` for the focus.
        preferred_duration: Bandwidth preference (already clamped).
        hour_fit:           Heatmap value at the request hour.
        novelty:            Novelty tolerance for the focus.
        friction:           Friction index (clamped here to [0, 1]).
        pinned_titles:      Focus area's pinned micro-skill titles.

    Returns:
        ScoreComponents with all fields populated.
    """
    return ScoreComponents(
        focus_match=score_focus_match(template.title, pinned_titles),
        success_prob=score_success_prob(template.tags, success_rates),
        bandwidth_fit=1.0 if preferred_duration in template.durations else 0.5,
        hour_fit=hour_fit,
        novelty_boost=score_novelty_boost(novelty),
        friction=_clamp(friction, 0.0, 1.0),
    )


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))

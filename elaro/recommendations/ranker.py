"""
Recommendation ranker: turns a focus area's catalog into one explained
suggestion of 1–3 actions.

Usage flow
----------
1. filter_contraindicated(templates, recent_stress)
   -> (candidates, filter_applied)   (never empties a non-empty catalog)

2. compute_score(...) per template, then rank_templates(...)
   -> list[ScoredTemplate]           (stable: ties keep catalog order)

3. select_actions(ranked, catalog)
   -> list[ActionTemplate]           (2–3 when the catalog has >= 2)

4. choose_variant(template, preferred) per pick, then
   ExplainWhyBuilder.build(...) with the mode of the chosen durations.

``RecommenderEngine.rank`` wires these together over a ``HistoryRepository``
and ``SignalsEngine``. It never raises: repository failures read as "no
data" and an empty catalog yields a suggestion with no actions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from elaro.history.repository import HistoryRepository, ResilientHistory
from elaro.models.action import ActionTemplate
from elaro.recommendations.explain import ExplainWhyBuilder
from elaro.recommendations.scorer import (
    FALLBACK_DURATION,
    NEUTRAL_RATE,
    ScoreComponents,
    clamp_duration,
    compute_score,
)
from elaro.signals.engine import SignalsEngine, most_common_value
from elaro.taxonomy.action_taxonomy import (
    DEFAULT_HEADLINE,
    FOCUS_HEADLINES,
    SKIP_IF_DYSREGULATED,
)
from elaro.utils.time_utils import ensure_aware, local_hour, utcnow

logger = logging.getLogger(__name__)

MAX_ACTIONS = 3
MIN_ACTIONS = 2


@dataclass
class ScoredTemplate:
    """A candidate template coupled with its score breakdown."""

    template:   ActionTemplate
    components: ScoreComponents

    @property
    def score(self) -> float:
        return self.components.total


@dataclass
class RankedSuggestion:
    """One day's suggestion for a focus area.

    Attributes:
        focus_id:        Focus area the suggestion is for.
        headline:        Fixed per-focus headline.
        actions:         Chosen templates, best first (0–3).
        chosen_variants: ``{template_id: minutes}`` for each chosen template.
        why_summary:     Rationale sentence ("" when there are no actions).
        scores:          ``{template_id: ScoreComponents}`` for each chosen template.
        filter_applied:  True if recent stress hid contraindicated templates.
    """

    focus_id:        str
    headline:        str
    actions:         list[ActionTemplate] = field(default_factory=list)
    chosen_variants: dict[str, int] = field(default_factory=dict)
    why_summary:     str = ""
    scores:          dict[str, ScoreComponents] = field(default_factory=dict)
    filter_applied:  bool = False

    @property
    def is_empty(self) -> bool:
        return not self.actions


def headline_for(focus_id: str) -> str:
    return FOCUS_HEADLINES.get(focus_id, DEFAULT_HEADLINE)


def filter_contraindicated(
    templates: list[ActionTemplate],
    recent_stress: bool,
) -> tuple[list[ActionTemplate], bool]:
    """Drop ``skip_if_dysregulated`` templates after a stressful moment.

    Returns:
        ``(candidates, filter_applied)``. When filtering would leave nothing,
        the unfiltered list is returned and ``filter_applied`` is False.
    """
    if not recent_stress:
        return list(templates), False
    kept = [t for t in templates if SKIP_IF_DYSREGULATED not in t.contraindications]
    if not kept:
        logger.debug("Contraindication filter would empty the catalog; ignoring it")
        return list(templates), False
    return kept, len(kept) < len(templates)


def rank_templates(scored: list[ScoredTemplate]) -> list[ScoredTemplate]:
    """Sort by score descending; ``sorted`` is stable so ties keep input order."""
    return sorted(scored, key=lambda s: s.score, reverse=True)


def select_actions(
    ranked: list[ScoredTemplate],
    catalog: list[ActionTemplate],
) -> list[ActionTemplate]:
    """Pick the templates to show.

    Rules (first match wins):
        1. >= 2 ranked candidates → top ``min(3, len(ranked))``.
        2. catalog has >= 2 templates → first 2 of the catalog.
        3. otherwise → whatever the catalog holds (0 or 1).
    """
    if len(ranked) >= MIN_ACTIONS:
        return [s.template for s in ranked[:MAX_ACTIONS]]
    if len(catalog) >= MIN_ACTIONS:
        return list(catalog[:MIN_ACTIONS])
    return list(catalog)


def choose_variant(template: ActionTemplate, preferred_duration: int) -> int:
    """Preferred duration if offered, else the first listed variant (5 if none)."""
    durations = template.durations
    if preferred_duration in durations:
        return preferred_duration
    return durations[0] if durations else FALLBACK_DURATION


class RecommenderEngine:
    """Rank a focus area's templates for a given moment.

    Args:
        history:   Source of templates and the focus area.
        signals:   Signal derivation over the same history.
        explainer: Rationale builder.
    """

    def __init__(
        self,
        history: HistoryRepository,
        signals: SignalsEngine,
        explainer: Optional[ExplainWhyBuilder] = None,
    ) -> None:
        self.history = ResilientHistory.wrap(history)
        self.signals = signals
        self.explainer = explainer or ExplainWhyBuilder()

    def rank(self, focus_id: str, now: Optional[datetime] = None) -> RankedSuggestion:
        """Build today's suggestion for ``focus_id``.

        Args:
            focus_id: Focus area to recommend for.
            now:      Moment of the request (default: now, UTC). Every signal
                      window ends here.

        Returns:
            ``RankedSuggestion``; ``actions`` is empty only when the focus
            has no templates.
        """
        now = ensure_aware(now) if now is not None else utcnow()
        headline = headline_for(focus_id)

        catalog = self.history.fetch_action_templates(focus_id)
        if not catalog:
            logger.info("No templates for focus '%s'; nothing to recommend", focus_id)
            return RankedSuggestion(focus_id=focus_id, headline=headline)

        recent_stress = self.signals.has_recent_stress(focus_id, as_of=now)
        candidates, filter_applied = filter_contraindicated(catalog, recent_stress)

        # ── Signals (computed once per call) ──────────────────────────────────
        success_rates = self.signals.success_rate_by_tag(focus_id, as_of=now)
        preferred = clamp_duration(self.signals.bandwidth_preference(focus_id, as_of=now))
        hour = local_hour(now, self.signals.tz)
        hour_fit = self.signals.time_of_day_heatmap(as_of=now).get(hour, NEUTRAL_RATE)
        novelty = self.signals.novelty_tolerance(focus_id, as_of=now)
        friction = max(0.0, min(1.0, self.signals.friction_index(focus_id, as_of=now)))
        focus = self.history.fetch_focus_area(focus_id)
        pinned = focus.pinned_micro_skill_titles if focus is not None else []

        components = {
            t.id: compute_score(
                template=t,
                success_rates=success_rates,
                preferred_duration=preferred,
                hour_fit=hour_fit,
                novelty=novelty,
                friction=friction,
                pinned_titles=pinned,
            )
            for t in catalog
        }
        ranked = rank_templates(
            [ScoredTemplate(template=t, components=components[t.id]) for t in candidates]
        )
        chosen = select_actions(ranked, catalog)

        chosen_variants = {t.id: choose_variant(t, preferred) for t in chosen}
        quoted = most_common_value(chosen_variants.values(), default=preferred)
        why = self.explainer.build(
            focus_id=focus_id,
            preferred_duration=quoted,
            hour=hour,
            friction_index=friction,
        )

        logger.debug(
            "Ranked %d/%d candidates for %s (stress=%s, pref=%dmin, hour=%d): %s",
            len(ranked), len(catalog), focus_id, recent_stress, preferred, hour,
            ", ".join(f"{s.template.id}={s.score:.3f}" for s in ranked),
        )

        return RankedSuggestion(
            focus_id=focus_id,
            headline=headline,
            actions=chosen,
            chosen_variants=chosen_variants,
            why_summary=why,
            scores={t.id: components[t.id] for t in chosen},
            filter_applied=filter_applied,
        )

"""
WeeklyAdjuster: weekly aggregation and the tweak decision.

Decision table (evaluated in order, first match wins)
-----------------------------------------------------
    1. SCALE_UP   : completion_rate >= 0.7  AND  friction <= 0.3
    2. SCALE_DOWN : completion_rate <= 0.3  OR   friction >  0.4
    3. KEEP       : everything else

Each week is decided independently from that week's window; the only state
carried across weeks is the WeeklySummary log.

Win / hard copy
---------------
win_text  : the most-completed template in the window (first seen on ties),
            "Completed '{title}' N times" / "Successfully completed '{title}'".
hard_text : friction > 0.4, then any HARD rating, then any stress note,
            else "manageable".
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Optional

from elaro.history.repository import DateRange, HistoryRepository, ResilientHistory
from elaro.models.action import ActionInstance, ActionTemplate
from elaro.models.summary import WeeklySummary, summary_id_for
from elaro.signals.engine import SignalsEngine, compute_completion_rate
from elaro.taxonomy.action_taxonomy import (
    DEFAULT_STRESS_KEYWORDS,
    FeltDifficulty,
    TweakDecision,
    note_mentions_stress,
)
from elaro.utils.time_utils import ensure_aware, utcnow, week_start_for

logger = logging.getLogger(__name__)

WEEK_DAYS = 7

NO_WINS_TEXT = "No completed actions this week"
HARD_HIGH_FRICTION_TEXT = "Several activities felt challenging this week"
HARD_DIFFICULT_TEXT = "Some activities felt difficult"
HARD_STRESS_TEXT = "Noticed some stress during activities"
HARD_MANAGEABLE_TEXT = "Activities felt manageable overall"


@dataclass(frozen=True)
class WeeklyAnalysis:
    """Result of analysing one focus area over one week.

    Attributes:
        focus_id:        Focus area reviewed.
        week_start:      Inclusive start of the 7-day window.
        completion_rate: done / total in the window (0.0 when empty).
        friction_index:  Share of hard / stressful instances in the window.
        win_text:        Highlight copy.
        hard_text:       What felt hard.
        suggested_tweak: Decision from the table above.
        rationale:       Sentence citing the decision and both metrics.
        instance_count:  Instances in the window.
    """

    focus_id:        str
    week_start:      datetime
    completion_rate: float
    friction_index:  float
    win_text:        str
    hard_text:       str
    suggested_tweak: TweakDecision
    rationale:       str
    instance_count:  int = 0


def determine_tweak(completion_rate: float, friction_index: float) -> TweakDecision:
    """Map the week's two metrics to a ``TweakDecision``."""
    if completion_rate >= 0.7 and friction_index <= 0.3:
        return TweakDecision.SCALE_UP
    if completion_rate <= 0.3 or friction_index > 0.4:
        return TweakDecision.SCALE_DOWN
    return TweakDecision.KEEP


def build_win_text(
    completed: list[ActionInstance],
    templates: Iterable[ActionTemplate],
) -> str:
    if not completed:
        return NO_WINS_TEXT

    # Counter preserves insertion order, so max() returns the first-seen leader.
    counts = Counter(inst.template_id for inst in completed)
    template_id, count = max(counts.items(), key=lambda kv: kv[1])

    titles = {t.id: t.title for t in templates}
    title = titles.get(template_id)
    if title is None:
        n = len(completed)
        return f"Completed {n} action{'' if n == 1 else 's'}"
    if count > 1:
        return f"Completed '{title}' {count} times"
    return f"Successfully completed '{title}'"


def build_hard_text(
    instances: list[ActionInstance],
    friction_index: float,
    stress_keywords: tuple[str, ...] = DEFAULT_STRESS_KEYWORDS,
) -> str:
    if friction_index > 0.4:
        return HARD_HIGH_FRICTION_TEXT
    if any(inst.felt_difficulty is FeltDifficulty.HARD for inst in instances):
        return HARD_DIFFICULT_TEXT
    if any(note_mentions_stress(inst.note, stress_keywords) for inst in instances):
        return HARD_STRESS_TEXT
    return HARD_MANAGEABLE_TEXT


def build_rationale(
    decision: TweakDecision,
    completion_rate: float,
    friction_index: float,
) -> str:
    """Explain ``decision`` citing both metrics as whole percentages."""
    metrics = f"{completion_rate:.0%} completion, {friction_index:.0%} friction"
    if decision is TweakDecision.SCALE_UP:
        advice = "you're ready for slightly more challenging activities."
    elif decision is TweakDecision.SCALE_DOWN:
        if completion_rate <= 0.3:
            advice = "let's make activities smaller and more manageable."
        else:
            advice = "simplifying activities should reduce stress."
    else:
        advice = "the current pace seems right."
    return f"{decision.display_name}: with {metrics}, {advice}"


class WeeklyAdjuster:
    """Weekly analysis and the confirmed-tweak write path.

    Args:
        history:       Source of instances and templates; summary sink.
        signals:       Used for the friction index over the week window.
        tz:            Wall-clock timezone for week boundaries.
        first_weekday: 0 = Monday … 6 = Sunday.
    """

    def __init__(
        self,
        history: HistoryRepository,
        signals: SignalsEngine,
        tz: Optional[tzinfo] = None,
        first_weekday: int = 0,
    ) -> None:
        self.history = ResilientHistory.wrap(history)
        self.signals = signals
        self.tz = tz if tz is not None else signals.tz
        self.first_weekday = first_weekday

    def current_week_start(self, now: Optional[datetime] = None) -> datetime:
        """Local midnight on the first weekday of the week containing ``now``."""
        moment = ensure_aware(now) if now is not None else utcnow()
        return week_start_for(moment, self.tz, self.first_weekday)

    def analyze_week(self, focus_id: str, week_start: datetime) -> WeeklyAnalysis:
        """Analyse ``[week_start, week_start + 7 days)`` for ``focus_id``."""
        week_start = ensure_aware(week_start)
        window = DateRange.week_of(week_start)
        instances = self.history.fetch_action_instances(window, focus_id)
        completed = [inst for inst in instances if inst.is_done]

        completion_rate = compute_completion_rate(instances)
        friction = self.signals.friction_index(
            focus_id, days=WEEK_DAYS, as_of=week_start + timedelta(days=WEEK_DAYS)
        )
        templates = self.history.fetch_action_templates(focus_id) if completed else []
        decision = determine_tweak(completion_rate, friction)

        analysis = WeeklyAnalysis(
            focus_id=focus_id,
            week_start=week_start,
            completion_rate=completion_rate,
            friction_index=friction,
            win_text=build_win_text(completed, templates),
            hard_text=build_hard_text(instances, friction, self.signals.stress_keywords),
            suggested_tweak=decision,
            rationale=build_rationale(decision, completion_rate, friction),
            instance_count=len(instances),
        )
        logger.debug(
            "Week of %s for %s: %d instances, completion=%.2f friction=%.2f → %s",
            week_start.date(), focus_id, len(instances), completion_rate, friction, decision,
        )
        return analysis

    def apply_tweak(
        self,
        decision: TweakDecision,
        focus_id: str,
        week_start: Optional[datetime] = None,
    ) -> None:
        """Persist ``decision`` as the WeeklySummary for ``week_start``.

        ``week_start`` defaults to the current week. The win / hard copy is
        recomputed for that week. Fire-and-forget: storage failures are
        logged and never raised.
        """
        try:
            week_start = ensure_aware(week_start) if week_start is not None else self.current_week_start()
            analysis = self.analyze_week(focus_id, week_start)
            summary = WeeklySummary(
                id=summary_id_for(focus_id, week_start),
                week_start=week_start,
                focus_id=focus_id,
                win_text=analysis.win_text,
                hard_text=analysis.hard_text,
                suggested_tweak=TweakDecision(decision),
            )
        except Exception:
            logger.exception("Could not build weekly summary for %s", focus_id)
            return

        self.history.save_weekly_summary(summary)
        logger.info(
            "Applied tweak %s for %s (week of %s)",
            summary.suggested_tweak, focus_id, week_start.date(),
            extra={"focus_id": focus_id},
        )

    def summaries(self, focus_id: str, limit: int = 10) -> list[WeeklySummary]:
        """Recorded summaries for ``focus_id``, most recent week first."""
        return self.history.fetch_weekly_summaries(focus_id, limit)

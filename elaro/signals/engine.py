"""
SignalsEngine: feature engineering over a window of action history.

Every signal is a pure function of the instances in a half-open window
``[as_of - days, as_of)``. The engine re-queries the repository once per
signal; nothing is cached between calls.

Signals
-------
success_rate_by_tag (focus, 7d):
    For each tag on a template that appears in the window,
    ``done / occurrences``. Tags never seen are omitted (callers default
    them to 0.5). Instances whose template is unknown are ignored.

time_of_day_heatmap (all focuses, 14d):
    Fraction of completions per local hour. All 24 hours present; values
    sum to 1.0, or are all 0.0 when nothing was completed.

bandwidth_preference (focus, 14d):
    Mode of ``variant_duration`` over completions. Ties → smallest
    duration. No completions → 10.

novelty_tolerance (focus, 14d):
    ``distinct templates completed / completions``:
    >= 0.7 HIGH, >= 0.4 MED, else LOW. No completions → MED.

friction_index (focus, 7d):
    Fraction of instances that felt HARD or carry a stress-keyword note.
    An instance counts once even if both hold. Empty window → 0.0.

streak_momentum (focus, 7d) / recent_performance (focus, 3d):
    ``done / total`` (0.0 when empty).

peak_hours (14d):
    Top-3 hours by heatmap value, descending, ties → lower hour.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, Optional

from elaro.history.repository import DateRange, HistoryRepository, ResilientHistory
from elaro.models.action import ActionInstance, ActionTemplate
from elaro.taxonomy.action_taxonomy import (
    DEFAULT_STRESS_KEYWORDS,
    FeltDifficulty,
    NoveltyTolerance,
    note_mentions_stress,
)
from elaro.utils.time_utils import ensure_aware, local_hour, utcnow

logger = logging.getLogger(__name__)

DEFAULT_BANDWIDTH_MINUTES = 10
RECENT_PERFORMANCE_DAYS = 3
PEAK_HOUR_COUNT = 3

_NOVELTY_HIGH = 0.7
_NOVELTY_MED = 0.4


# ── Pure computations ─────────────────────────────────────────────────────────


def compute_success_rate_by_tag(
    instances: Iterable[ActionInstance],
    templates: Iterable[ActionTemplate],
) -> dict[str, float]:
    """Per-tag completion rate over ``instances``.

    Args:
        instances: Instances in the window (any status).
        templates: Templates used to resolve ``template_id`` → tags.

    Returns:
        ``{tag: done / occurrences}`` for every tag that occurred.
    """
    tags_by_template = {t.id: t.tags for t in templates}
    done: Counter[str] = Counter()
    total: Counter[str] = Counter()

    for inst in instances:
        tags = tags_by_template.get(inst.template_id)
        if tags is None:
            continue
        for tag in tags:
            total[tag] += 1
            if inst.is_done:
                done[tag] += 1

    return {tag: done[tag] / count for tag, count in total.items()}


def compute_time_of_day_heatmap(
    instances: Iterable[ActionInstance],
    tz: tzinfo = timezone.utc,
) -> dict[int, float]:
    """Fraction of completed instances per local hour (0–23)."""
    counts: Counter[int] = Counter(
        local_hour(inst.date, tz) for inst in instances if inst.is_done
    )
    completed = sum(counts.values())
    if completed == 0:
        return {hour: 0.0 for hour in range(24)}
    return {hour: counts[hour] / completed for hour in range(24)}


def compute_bandwidth_preference(instances: Iterable[ActionInstance]) -> int:
    """Most frequent completed ``variant_duration``; ties → smallest."""
    counts: Counter[int] = Counter(inst.variant_duration for inst in instances if inst.is_done)
    if not counts:
        return DEFAULT_BANDWIDTH_MINUTES
    return most_common_value(counts.elements())


def compute_novelty_tolerance(instances: Iterable[ActionInstance]) -> NoveltyTolerance:
    completed = [inst.template_id for inst in instances if inst.is_done]
    if not completed:
        return NoveltyTolerance.MED

    ratio = len(set(completed)) / len(completed)
    if ratio >= _NOVELTY_HIGH:
        return NoveltyTolerance.HIGH
    if ratio >= _NOVELTY_MED:
        return NoveltyTolerance.MED
    return NoveltyTolerance.LOW


def is_friction_instance(
    instance: ActionInstance,
    stress_keywords: tuple[str, ...] = DEFAULT_STRESS_KEYWORDS,
) -> bool:
    """True if the instance felt HARD or its note mentions stress."""
    return (
        instance.felt_difficulty is FeltDifficulty.HARD
        or note_mentions_stress(instance.note, stress_keywords)
    )


def compute_friction_index(
    instances: Iterable[ActionInstance],
    stress_keywords: tuple[str, ...] = DEFAULT_STRESS_KEYWORDS,
) -> float:
    window = list(instances)
    if not window:
        return 0.0
    flagged = sum(1 for inst in window if is_friction_instance(inst, stress_keywords))
    return flagged / len(window)


def compute_completion_rate(instances: Iterable[ActionInstance]) -> float:
    """``done / total`` over ``instances`` (0.0 when empty)."""
    window = list(instances)
    if not window:
        return 0.0
    return sum(1 for inst in window if inst.is_done) / len(window)


def compute_peak_hours(heatmap: dict[int, float], n: int = PEAK_HOUR_COUNT) -> list[int]:
    """Top ``n`` hours by heatmap value, descending; ties → lower hour."""
    ranked = sorted(heatmap.items(), key=lambda kv: (-kv[1], kv[0]))
    return [hour for hour, _ in ranked[:n]]


def most_common_value(values: Iterable[int], default: Optional[int] = None) -> Optional[int]:
    """Statistical mode of ``values``; ties resolve to the smallest value.

    Returns ``default`` when ``values`` is empty.
    """
    counts = Counter(values)
    if not counts:
        return default
    top = max(counts.values())
    return min(value for value, count in counts.items() if count == top)


def _resolve(value, default):
    # An explicit 0 is a real (empty) window, not a request for the default.
    return default if value is None else value


# ── Snapshot ──────────────────────────────────────────────────────────────────


@dataclass
class SignalSnapshot:
    """Every signal for one focus at one instant, for inspection.

    Attributes:
        focus_id:             Focus the per-focus signals were computed for.
        as_of:                Exclusive end of every window.
        success_rate_by_tag:  Per-tag completion rates (7d).
        heatmap:              Completion fraction per local hour (14d).
        peak_hours:           Top-3 hours from ``heatmap``.
        bandwidth_preference: Preferred duration in minutes (14d).
        novelty_tolerance:    Appetite for new templates (14d).
        friction_index:       Share of hard / stressful instances (7d).
        streak_momentum:      Completion rate (7d).
        recent_performance:   Completion rate (3d).
        recent_stress:        Stress note within the contraindication window.
    """

    focus_id:             str
    as_of:                datetime
    success_rate_by_tag:  dict[str, float]
    heatmap:              dict[int, float]
    peak_hours:           list[int]
    bandwidth_preference: int
    novelty_tolerance:    NoveltyTolerance
    friction_index:       float
    streak_momentum:      float
    recent_performance:   float
    recent_stress:        bool = field(default=False)


# ── Engine ────────────────────────────────────────────────────────────────────


class SignalsEngine:
    """Derive behavioural signals from a ``HistoryRepository``.

    Window lengths left as ``None`` fall back to the engine defaults, which
    mirror the ``[engine]`` config section.

    Args:
        history:               Source of templates and instances.
        tz:                    Wall-clock timezone for hour bucketing.
        stress_keywords:       Lower-case substrings that mark a stressful note.
        success_window_days:   Default window for ``success_rate_by_tag``.
        heatmap_window_days:   Default window for the heatmap / peak hours.
        bandwidth_window_days: Default window for ``bandwidth_preference``.
        novelty_window_days:   Default window for ``novelty_tolerance``.
        friction_window_days:  Default window for friction and momentum.
        stress_lookback_hours: Default window for ``has_recent_stress``.
    """

    def __init__(
        self,
        history: HistoryRepository,
        tz: tzinfo = timezone.utc,
        stress_keywords: Iterable[str] = DEFAULT_STRESS_KEYWORDS,
        success_window_days: int = 7,
        heatmap_window_days: int = 14,
        bandwidth_window_days: int = 14,
        novelty_window_days: int = 14,
        friction_window_days: int = 7,
        stress_lookback_hours: int = 24,
    ) -> None:
        self.history = ResilientHistory.wrap(history)
        self.tz = tz
        self.stress_keywords = tuple(kw.lower() for kw in stress_keywords)
        self.success_window_days = success_window_days
        self.heatmap_window_days = heatmap_window_days
        self.bandwidth_window_days = bandwidth_window_days
        self.novelty_window_days = novelty_window_days
        self.friction_window_days = friction_window_days
        self.stress_lookback_hours = stress_lookback_hours

    def _instances(
        self,
        days: float,
        as_of: Optional[datetime],
        focus_id: Optional[str] = None,
    ) -> list[ActionInstance]:
        window = DateRange.lookback(days, as_of)
        return self.history.fetch_action_instances(window, focus_id)

    def success_rate_by_tag(
        self,
        focus_id: str,
        days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> dict[str, float]:
        instances = self._instances(_resolve(days, self.success_window_days), as_of, focus_id)
        if not instances:
            return {}
        templates = self.history.fetch_action_templates(focus_id)
        return compute_success_rate_by_tag(instances, templates)

    def time_of_day_heatmap(
        self,
        days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> dict[int, float]:
        instances = self._instances(_resolve(days, self.heatmap_window_days), as_of)
        return compute_time_of_day_heatmap(instances, self.tz)

    def bandwidth_preference(
        self,
        focus_id: str,
        days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> int:
        instances = self._instances(_resolve(days, self.bandwidth_window_days), as_of, focus_id)
        return compute_bandwidth_preference(instances)

    def novelty_tolerance(
        self,
        focus_id: str,
        days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> NoveltyTolerance:
        instances = self._instances(_resolve(days, self.novelty_window_days), as_of, focus_id)
        return compute_novelty_tolerance(instances)

    def friction_index(
        self,
        focus_id: str,
        days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> float:
        instances = self._instances(_resolve(days, self.friction_window_days), as_of, focus_id)
        return compute_friction_index(instances, self.stress_keywords)

    def streak_momentum(
        self,
        focus_id: str,
        days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> float:
        instances = self._instances(_resolve(days, self.friction_window_days), as_of, focus_id)
        return compute_completion_rate(instances)

    def recent_performance(
        self,
        focus_id: str,
        days: int = RECENT_PERFORMANCE_DAYS,
        as_of: Optional[datetime] = None,
    ) -> float:
        """Completion rate over the last few days (default 3)."""
        return self.streak_momentum(focus_id, days, as_of)

    def peak_hours(
        self,
        days: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> list[int]:
        return compute_peak_hours(self.time_of_day_heatmap(days, as_of))

    def has_recent_stress(
        self,
        focus_id: str,
        hours: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> bool:
        """True if any instance for ``focus_id`` in the prior ``hours`` has a stress note."""
        end = ensure_aware(as_of) if as_of is not None else utcnow()
        span = timedelta(hours=_resolve(hours, self.stress_lookback_hours))
        window = DateRange(start=end - span, end=end)
        return any(
            note_mentions_stress(inst.note, self.stress_keywords)
            for inst in self.history.fetch_action_instances(window, focus_id)
        )

    def snapshot(self, focus_id: str, as_of: Optional[datetime] = None) -> SignalSnapshot:
        """Compute every signal for ``focus_id`` at ``as_of`` (default: now)."""
        as_of = ensure_aware(as_of) if as_of is not None else utcnow()
        heatmap = self.time_of_day_heatmap(as_of=as_of)
        snap = SignalSnapshot(
            focus_id=focus_id,
            as_of=as_of,
            success_rate_by_tag=self.success_rate_by_tag(focus_id, as_of=as_of),
            heatmap=heatmap,
            peak_hours=compute_peak_hours(heatmap),
            bandwidth_preference=self.bandwidth_preference(focus_id, as_of=as_of),
            novelty_tolerance=self.novelty_tolerance(focus_id, as_of=as_of),
            friction_index=self.friction_index(focus_id, as_of=as_of),
            streak_momentum=self.streak_momentum(focus_id, as_of=as_of),
            recent_performance=self.recent_performance(focus_id, as_of=as_of),
            recent_stress=self.has_recent_stress(focus_id, as_of=as_of),
        )
        logger.debug(
            "Signals for %s @ %s: pref=%dmin novelty=%s friction=%.2f momentum=%.2f",
            focus_id, as_of, snap.bandwidth_preference, snap.novelty_tolerance,
            snap.friction_index, snap.streak_momentum,
        )
        return snap

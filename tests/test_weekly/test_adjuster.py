"""
Tests for elaro.weekly.adjuster.

Includes the full decision table, win / hard copy priority, the write path
(explicit and current week), and failure degradation.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from elaro.signals.engine import SignalsEngine
from elaro.taxonomy.action_taxonomy import ActionStatus, FeltDifficulty, TweakDecision
from elaro.weekly.adjuster import (
    NO_WINS_TEXT,
    WeeklyAdjuster,
    build_hard_text,
    build_rationale,
    build_win_text,
    determine_tweak,
)

WEEK_START = datetime(2026, 10, 12, tzinfo=timezone.utc)   # Monday


def _adjuster(history, **kwargs) -> WeeklyAdjuster:
    return WeeklyAdjuster(history, SignalsEngine(history), **kwargs)


def _in_week(days: float) -> datetime:
    return WEEK_START + timedelta(days=days)


# ── Decision table ────────────────────────────────────────────────────────────

class TestDetermineTweak:
    @pytest.mark.parametrize(
        "rate, friction, expected",
        [
            (0.8, 0.2, TweakDecision.SCALE_UP),
            (0.2, 0.2, TweakDecision.SCALE_DOWN),
            (0.5, 0.5, TweakDecision.SCALE_DOWN),
            (0.5, 0.35, TweakDecision.KEEP),
        ],
    )
    def test_decision_table(self, rate, friction, expected):
        assert determine_tweak(rate, friction) is expected

    def test_boundaries(self):
        assert determine_tweak(0.7, 0.3) is TweakDecision.SCALE_UP
        assert determine_tweak(0.3, 0.0) is TweakDecision.SCALE_DOWN
        assert determine_tweak(0.7, 0.31) is TweakDecision.KEEP
        assert determine_tweak(0.9, 0.41) is TweakDecision.SCALE_DOWN
        assert determine_tweak(0.31, 0.4) is TweakDecision.KEEP


# ── Copy ──────────────────────────────────────────────────────────────────────

class TestWinText:
    def test_no_completions(self, make_template):
        assert build_win_text([], [make_template()]) == NO_WINS_TEXT

    def test_repeated_template(self, make_template, make_instance):
        completed = [make_instance(), make_instance(), make_instance(template_id="other")]
        assert build_win_text(completed, [make_template()]) == (
            "Completed 'Try first, ask for help after' 2 times"
        )

    def test_single_completion(self, make_template, make_instance):
        assert build_win_text([make_instance()], [make_template()]) == (
            "Successfully completed 'Try first, ask for help after'"
        )

    def test_tie_goes_to_first_seen(self, make_template, make_instance):
        templates = [make_template(template_id="a", title="A"), make_template(template_id="b", title="B")]
        completed = [make_instance(template_id="b"), make_instance(template_id="a")]
        assert build_win_text(completed, templates) == "Successfully completed 'B'"

    def test_unknown_template_counts_actions(self, make_instance):
        assert build_win_text([make_instance(), make_instance()], []) == "Completed 2 actions"
        assert build_win_text([make_instance()], []) == "Completed 1 action"


class TestHardText:
    def test_high_friction_first(self, make_instance):
        text = build_hard_text([make_instance(felt=FeltDifficulty.HARD)], 0.5)
        assert text == "Several activities felt challenging this week"

    def test_hard_rating_before_stress(self, make_instance):
        instances = [make_instance(felt=FeltDifficulty.HARD), make_instance(note="upset")]
        assert build_hard_text(instances, 0.4) == "Some activities felt difficult"

    def test_stress_note(self, make_instance):
        instances = [make_instance(note="a few tears"), make_instance(), make_instance()]
        assert build_hard_text(instances, 0.33) == "Noticed some stress during activities"

    def test_manageable(self, make_instance):
        assert build_hard_text([make_instance()], 0.0) == "Activities felt manageable overall"


class TestRationale:
    def test_cites_decision_and_both_metrics(self):
        text = build_rationale(TweakDecision.SCALE_UP, 0.8, 0.2)
        assert text.startswith("Scale up")
        assert "80%" in text
        assert "20%" in text

    def test_scale_down_reasons_differ(self):
        low_completion = build_rationale(TweakDecision.SCALE_DOWN, 0.2, 0.1)
        high_friction = build_rationale(TweakDecision.SCALE_DOWN, 0.6, 0.5)
        assert "smaller" in low_completion
        assert "reduce stress" in high_friction
        assert "50%" in high_friction


# ── Analysis ──────────────────────────────────────────────────────────────────

class TestAnalyzeWeek:
    def test_empty_week(self, memory_history):
        analysis = _adjuster(memory_history).analyze_week("independence", WEEK_START)
        assert analysis.completion_rate == 0.0
        assert analysis.friction_index == 0.0
        assert analysis.win_text == NO_WINS_TEXT
        assert analysis.hard_text == "Activities felt manageable overall"
        assert analysis.suggested_tweak is TweakDecision.SCALE_DOWN
        assert analysis.instance_count == 0

    def test_window_is_the_given_week(self, memory_history, make_template, make_instance):
        memory_history.templates.append(make_template())
        memory_history.instances += [
            make_instance(at=_in_week(-0.5), felt=FeltDifficulty.HARD, status=ActionStatus.SKIPPED),
            make_instance(at=_in_week(0)),
            make_instance(at=_in_week(1.4)),
            make_instance(at=_in_week(3.2)),
            make_instance(at=_in_week(5), status=ActionStatus.SKIPPED),
            make_instance(at=_in_week(7), felt=FeltDifficulty.HARD),
        ]
        analysis = _adjuster(memory_history).analyze_week("independence", WEEK_START)
        assert analysis.instance_count == 4
        assert analysis.completion_rate == pytest.approx(0.75)
        assert analysis.friction_index == 0.0
        assert analysis.win_text == "Completed 'Try first, ask for help after' 3 times"
        assert analysis.suggested_tweak is TweakDecision.SCALE_UP
        assert "75%" in analysis.rationale

    def test_friction_drives_scale_down(self, memory_history, make_template, make_instance):
        memory_history.templates.append(make_template())
        memory_history.instances += [
            make_instance(at=_in_week(1), felt=FeltDifficulty.HARD),
            make_instance(at=_in_week(2), note="felt overwhelmed"),
            make_instance(at=_in_week(3)),
            make_instance(at=_in_week(4)),
        ]
        analysis = _adjuster(memory_history).analyze_week("independence", WEEK_START)
        assert analysis.friction_index == pytest.approx(0.5)
        assert analysis.completion_rate == 1.0
        assert analysis.hard_text == "Several activities felt challenging this week"
        assert analysis.suggested_tweak is TweakDecision.SCALE_DOWN

    def test_failing_repository_degrades(self, failing_history):
        analysis = _adjuster(failing_history).analyze_week("independence", WEEK_START)
        assert analysis.completion_rate == 0.0
        assert analysis.suggested_tweak is TweakDecision.SCALE_DOWN


# ── Write path ────────────────────────────────────────────────────────────────

class TestApplyTweak:
    def test_persists_summary_for_given_week(self, memory_history, make_template, make_instance):
        memory_history.templates.append(make_template())
        memory_history.instances.append(make_instance(at=_in_week(2)))
        _adjuster(memory_history).apply_tweak(TweakDecision.KEEP, "independence", WEEK_START)

        (summary,) = memory_history.summaries.values()
        assert summary.week_start == WEEK_START
        assert summary.id == f"independence-{int(WEEK_START.timestamp())}"
        assert summary.suggested_tweak is TweakDecision.KEEP
        assert summary.win_text == "Successfully completed 'Try first, ask for help after'"

    def test_repeat_supersedes(self, memory_history):
        adjuster = _adjuster(memory_history)
        adjuster.apply_tweak(TweakDecision.KEEP, "independence", WEEK_START)
        adjuster.apply_tweak(TweakDecision.SCALE_UP, "independence", WEEK_START)
        assert len(memory_history.summaries) == 1
        assert adjuster.summaries("independence")[0].suggested_tweak is TweakDecision.SCALE_UP

    def test_defaults_to_current_week(self, memory_history):
        adjuster = _adjuster(memory_history)
        adjuster.apply_tweak(TweakDecision.SCALE_DOWN, "independence")
        (summary,) = memory_history.summaries.values()
        assert summary.week_start == adjuster.current_week_start()

    def test_failing_repository_is_swallowed(self, failing_history):
        _adjuster(failing_history).apply_tweak(TweakDecision.KEEP, "independence", WEEK_START)

    def test_summaries_newest_first(self, memory_history):
        adjuster = _adjuster(memory_history)
        for weeks_back in (2, 0, 1):
            adjuster.apply_tweak(
                TweakDecision.KEEP, "independence", WEEK_START - timedelta(weeks=weeks_back)
            )
        starts = [s.week_start for s in adjuster.summaries("independence")]
        assert starts == sorted(starts, reverse=True)
        assert len(adjuster.summaries("independence", limit=2)) == 2


class TestCurrentWeekStart:
    def test_monday_start_utc(self, memory_history, now):
        assert _adjuster(memory_history).current_week_start(now) == WEEK_START

    def test_sunday_start_in_local_time(self, memory_history, now):
        tz = ZoneInfo("America/New_York")
        adjuster = _adjuster(memory_history, tz=tz, first_weekday=6)
        assert adjuster.current_week_start(now) == datetime(2026, 10, 11, tzinfo=tz)

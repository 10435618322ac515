"""
Tests for elaro.recommendations.scorer.
"""

from __future__ import annotations

import itertools

import pytest

from elaro.recommendations.scorer import (
    ScoreComponents,
    clamp_duration,
    compute_score,
    score_focus_match,
    score_novelty_boost,
    score_success_prob,
)
from elaro.taxonomy.action_taxonomy import NoveltyTolerance


class TestComponents:
    def test_focus_match_substring_case_insensitive(self):
        assert score_focus_match("Weekend Outfit choice", ["outfit"]) == 1.0
        assert score_focus_match("Lay out two options", ["outfit"]) == 0.6

    def test_focus_match_flat_without_pins(self):
        assert score_focus_match("Anything", []) == 0.6
        assert score_focus_match("Anything", [""]) == 0.6

    def test_success_prob_defaults_missing_tags(self):
        assert score_success_prob(["a", "b"], {"a": 1.0}) == pytest.approx(0.75)
        assert score_success_prob([], {"a": 0.0}) == 0.5

    def test_novelty_boost(self):
        assert score_novelty_boost(NoveltyTolerance.LOW) == 0.0
        assert score_novelty_boost(NoveltyTolerance.MED) == 0.2
        assert score_novelty_boost(NoveltyTolerance.HIGH) == 0.2

    def test_clamp_duration(self):
        assert clamp_duration(10) == 10
        assert clamp_duration(15) == 5


class TestComputeScore:
    def test_neutral_template(self, make_template):
        c = compute_score(
            template=make_template(durations=(5, 10)),
            success_rates={},
            preferred_duration=10,
            hour_fit=0.0,
            novelty=NoveltyTolerance.MED,
            friction=0.0,
        )
        assert c.focus_match == 0.6
        assert c.success_prob == 0.5
        assert c.bandwidth_fit == 1.0
        assert c.novelty_boost == 0.2
        assert c.total == pytest.approx(0.58)

    def test_missing_duration_halves_bandwidth_fit(self, make_template):
        c = compute_score(make_template(durations=(5,)), {}, 20, 0.5, NoveltyTolerance.LOW, 0.0)
        assert c.bandwidth_fit == 0.5

    def test_friction_is_clamped(self, make_template):
        c = compute_score(make_template(), {}, 5, 0.5, NoveltyTolerance.LOW, 3.0)
        assert c.friction == 1.0
        c = compute_score(make_template(), {}, 5, 0.5, NoveltyTolerance.LOW, -1.0)
        assert c.friction == 0.0

    def test_scores_stay_in_range(self):
        grid = itertools.product(
            (0.6, 1.0), (0.0, 0.5, 1.0), (0.5, 1.0), (0.0, 1.0), (0.0, 0.2), (0.0, 1.0)
        )
        for focus, success, bandwidth, hour, novelty, friction in grid:
            total = ScoreComponents(focus, success, bandwidth, hour, novelty, friction).total
            assert -0.10 <= total <= 1.10

    def test_best_and_worst_case(self):
        best = ScoreComponents(1.0, 1.0, 1.0, 1.0, 0.2, 0.0)
        worst = ScoreComponents(0.6, 0.0, 0.5, 0.0, 0.0, 1.0)
        assert best.total == pytest.approx(0.92)
        assert worst.total == pytest.approx(0.285)

"""
Tests for elaro.recommendations.explain.
"""

from __future__ import annotations

import pytest

from elaro.recommendations.explain import ExplainWhyBuilder, friction_phrase, time_of_day_phrase


class TestClassification:
    @pytest.mark.parametrize("hour", [5, 8, 11])
    def test_mornings(self, hour):
        assert time_of_day_phrase(hour) == "mornings"

    @pytest.mark.parametrize("hour", [12, 14, 16])
    def test_afternoons(self, hour):
        assert time_of_day_phrase(hour) == "afternoons"

    @pytest.mark.parametrize("hour", [17, 23, 0, 4])
    def test_evenings_wrap_past_midnight(self, hour):
        assert time_of_day_phrase(hour) == "evenings"

    def test_friction_threshold_is_strict(self):
        assert friction_phrase(0.4) == "a small stretch"
        assert friction_phrase(0.41) == "gentle options"


class TestExplainWhyBuilder:
    def test_full_sentence(self):
        text = ExplainWhyBuilder().build("independence", 10, 8, 0.1)
        assert text == (
            "Because mornings and 10-minute actions work for you, "
            "we're offering a small stretch for Independence today."
        )

    def test_high_friction_evening(self):
        text = ExplainWhyBuilder().build("emotion_skills", 5, 20, 0.6)
        assert "evenings" in text
        assert "5-minute" in text
        assert "gentle options" in text
        assert "Emotion Skills" in text

    def test_unknown_focus_falls_back(self):
        assert "for your focus today" in ExplainWhyBuilder().build("sleep", 5, 13, 0.0)

    def test_custom_focus_names(self):
        builder = ExplainWhyBuilder({"sleep": "Sleep Routines"})
        assert "Sleep Routines" in builder.build("sleep", 20, 13, 0.0)
        assert builder.focus_name("independence") == "your focus"

"""
Tests for elaro/container.py: wiring and end-to-end flow over SQLite.
"""

from __future__ import annotations

from datetime import timedelta

from elaro.config import EngineConfig
from elaro.container import build_engines
from elaro.history.repository import ResilientHistory
from elaro.taxonomy.action_taxonomy import TweakDecision


class TestBuildEngines:
    def test_one_shared_resilient_history(self, memory_history):
        engines = build_engines(memory_history)
        assert isinstance(engines.history, ResilientHistory)
        assert engines.history.inner is memory_history
        assert engines.signals.history is engines.history
        assert engines.recommender.history is engines.history
        assert engines.weekly.history is engines.history

    def test_config_flows_to_engines(self, memory_history):
        config = EngineConfig(
            timezone="Europe/Berlin", first_weekday=6, stress_keywords=["Cranky"], success_window_days=3
        )
        engines = build_engines(memory_history, config)
        assert engines.signals.tz.key == "Europe/Berlin"
        assert engines.signals.stress_keywords == ("cranky",)
        assert engines.weekly.first_weekday == 6

    def test_failing_store_degrades(self, failing_history, now):
        engines = build_engines(failing_history)
        assert engines.recommender.rank("independence", now).is_empty
        assert engines.weekly.analyze_week("independence", engines.weekly.current_week_start(now)).instance_count == 0


class TestSQLiteFlow:
    def test_log_recommend_review_apply(self, sqlite_history, make_template, make_instance, now):
        for tid in ("ind-a", "ind-b", "ind-c"):
            sqlite_history.templates.upsert(make_template(template_id=tid, title=tid))
        engines = build_engines(sqlite_history)
        week_start = engines.weekly.current_week_start(now)

        for day in range(3):
            engines.history.save_action_instance(
                make_instance(template_id="ind-b", at=week_start + timedelta(days=day, hours=8))
            )

        suggestion = engines.recommender.rank("independence", now)
        assert len(suggestion.actions) == 3

        analysis = engines.weekly.analyze_week("independence", week_start)
        assert analysis.suggested_tweak is TweakDecision.SCALE_UP
        assert analysis.win_text == "Completed 'ind-b' 3 times"

        engines.weekly.apply_tweak(analysis.suggested_tweak, "independence", week_start)
        (summary,) = engines.weekly.summaries("independence")
        assert summary.week_start == week_start
        assert summary.win_text == analysis.win_text

"""
Tests for the SQLite table repositories in elaro.db.repositories.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from elaro.db.repositories.focus_repo import FocusAreaRepository
from elaro.db.repositories.instance_repo import ActionInstanceRepository
from elaro.db.repositories.summary_repo import WeeklySummaryRepository
from elaro.db.repositories.template_repo import ActionTemplateRepository
from elaro.models.focus import BuildingBlock, FocusArea
from elaro.models.summary import WeeklySummary, summary_id_for
from elaro.taxonomy.action_taxonomy import (
    SKIP_IF_DYSREGULATED,
    ActionStatus,
    BuildingBlockType,
    FeltDifficulty,
    TweakDecision,
)


def _summary(week_start: datetime, tweak: TweakDecision = TweakDecision.KEEP) -> WeeklySummary:
    return WeeklySummary(
        id=summary_id_for("independence", week_start),
        week_start=week_start,
        focus_id="independence",
        win_text="Completed 'Try first' 2 times",
        hard_text="Activities felt manageable overall",
        suggested_tweak=tweak,
    )


class TestActionTemplateRepository:
    def test_round_trip(self, in_memory_db, make_template):
        repo = ActionTemplateRepository(in_memory_db)
        template = make_template(durations=(5, 20), contraindications=(SKIP_IF_DYSREGULATED,))
        repo.upsert(template)
        assert repo.get_by_id(template.id) == template
        assert repo.get_by_id("missing") is None

    def test_catalog_order_survives_update(self, in_memory_db, make_template):
        repo = ActionTemplateRepository(in_memory_db)
        for tid in ("c", "a", "b"):
            repo.upsert(make_template(template_id=tid, title=tid.upper()))
        repo.upsert(make_template(template_id="c", title="C v2", content_version=2))

        focus = repo.get_by_focus("independence")
        assert [t.id for t in focus] == ["c", "a", "b"]
        assert focus[0].title == "C v2"
        assert repo.content_versions() == {"c": 2, "a": 1, "b": 1}
        assert repo.count() == 3

    def test_get_by_focus_filters(self, in_memory_db, make_template):
        repo = ActionTemplateRepository(in_memory_db)
        repo.upsert(make_template(template_id="i1"))
        repo.upsert(make_template(template_id="e1", focus_id="emotion_skills"))
        assert [t.id for t in repo.get_by_focus("emotion_skills")] == ["e1"]
        assert repo.get_by_focus("sleep") == []
        assert len(repo.get_all()) == 2


class TestActionInstanceRepository:
    @pytest.fixture
    def repo(self, in_memory_db, make_template) -> ActionInstanceRepository:
        ActionTemplateRepository(in_memory_db).upsert(make_template())
        return ActionInstanceRepository(in_memory_db)

    def test_insert_is_idempotent(self, repo, make_instance):
        instance = make_instance(instance_id="abc")
        assert repo.insert(instance) is True
        assert repo.insert(instance) is False
        assert repo.count() == 1

    def test_round_trip_with_optional_fields(self, repo, make_instance):
        instance = make_instance(
            status=ActionStatus.SNOOZED, felt=FeltDifficulty.HARD, note="tears", minutes=10
        ).model_copy(update={"mood": "tired"})
        repo.insert(instance)
        stored = repo.get_by_id(instance.id)
        assert stored == instance
        assert stored.mood == "tired"

    def test_range_is_half_open_and_ordered(self, repo, make_instance, now):
        start, end = now - timedelta(days=1), now
        repo.insert(make_instance(instance_id="late", at=now - timedelta(hours=1)))
        repo.insert(make_instance(instance_id="start", at=start))
        repo.insert(make_instance(instance_id="end", at=end))
        repo.insert(make_instance(instance_id="before", at=start - timedelta(seconds=1)))
        assert [i.id for i in repo.get_in_range(start, end)] == ["start", "late"]

    def test_range_focus_filter(self, repo, in_memory_db, make_template, make_instance, now):
        ActionTemplateRepository(in_memory_db).upsert(
            make_template(template_id="emo", focus_id="emotion_skills")
        )
        repo.insert(make_instance())
        repo.insert(make_instance(template_id="emo", focus_id="emotion_skills"))
        window = (now - timedelta(days=1), now)
        assert len(repo.get_in_range(*window)) == 2
        assert [i.focus_id for i in repo.get_in_range(*window, focus_id="emotion_skills")] == [
            "emotion_skills"
        ]
        assert repo.count("independence") == 1

    def test_non_utc_bounds_compare_correctly(self, repo, make_instance, now):
        plus_two = timezone(timedelta(hours=2))
        repo.insert(make_instance(at=now - timedelta(minutes=30)))
        local_end = now.astimezone(plus_two)
        assert len(repo.get_in_range(local_end - timedelta(hours=1), local_end)) == 1

    def test_unknown_template_rejected(self, repo, make_instance):
        with pytest.raises(sqlite3.IntegrityError):
            repo.insert(make_instance(template_id="missing"))


class TestFocusAreaRepository:
    def test_round_trip_with_blocks(self, in_memory_db, now):
        repo = FocusAreaRepository(in_memory_db)
        focus = FocusArea(
            id="independence",
            name="Independence",
            started_at=now,
            pinned_micro_skill_titles=["outfit"],
            building_blocks=[
                BuildingBlock(type=BuildingBlockType.RITUAL, title="Morning list", tags=["routine"]),
            ],
        )
        repo.upsert(focus)
        assert repo.get_by_id("independence") == focus
        assert repo.get_by_id("sleep") is None

    def test_insert_if_missing_never_overwrites(self, in_memory_db):
        repo = FocusAreaRepository(in_memory_db)
        assert repo.insert_if_missing(FocusArea(id="independence", name="Independence"))
        assert not repo.insert_if_missing(FocusArea(id="independence", name="Renamed"))
        assert repo.get_by_id("independence").name == "Independence"

    def test_set_pinned_titles(self, in_memory_db):
        repo = FocusAreaRepository(in_memory_db)
        repo.upsert(FocusArea(id="independence", name="Independence"))
        assert repo.set_pinned_titles("independence", ["two options"])
        assert not repo.set_pinned_titles("sleep", ["x"])
        assert repo.get_by_id("independence").pinned_micro_skill_titles == ["two options"]

    def test_active_only(self, in_memory_db):
        repo = FocusAreaRepository(in_memory_db)
        repo.upsert(FocusArea(id="independence", name="Independence"))
        repo.upsert(FocusArea(id="emotion_skills", name="Emotion Skills", active=False))
        assert [f.id for f in repo.get_all(active_only=True)] == ["independence"]
        assert len(repo.get_all()) == 2


class TestWeeklySummaryRepository:
    WEEK = datetime(2026, 10, 12, tzinfo=timezone.utc)

    def test_upsert_supersedes(self, in_memory_db):
        repo = WeeklySummaryRepository(in_memory_db)
        repo.upsert(_summary(self.WEEK))
        repo.upsert(_summary(self.WEEK, TweakDecision.SCALE_UP))
        assert repo.count() == 1
        assert repo.get("independence", self.WEEK).suggested_tweak is TweakDecision.SCALE_UP

    def test_newest_first_with_limit(self, in_memory_db):
        repo = WeeklySummaryRepository(in_memory_db)
        for weeks_back in (1, 3, 0, 2):
            repo.upsert(_summary(self.WEEK - timedelta(weeks=weeks_back)))
        listed = repo.get_for_focus("independence", limit=3)
        assert [s.week_start for s in listed] == [
            self.WEEK, self.WEEK - timedelta(weeks=1), self.WEEK - timedelta(weeks=2)
        ]
        assert repo.get_for_focus("sleep") == []

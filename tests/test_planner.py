# tests/test_planner.py
import json
import sqlite3
from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from prep_planner.enrichment import ScheduleEnricher
from prep_planner.models import ConfigurationError, DayConstraint, StudySession
from prep_planner.planner import StudyPlanner
from prep_planner.progress import completion_percentage


@pytest.fixture
def planner(small_curriculum, config):
    p = StudyPlanner(small_curriculum, config=config)
    p.initialize()
    return p


def test_in_memory_planner(planner):
    assert not planner.persistent
    assert planner.sync() is False


def test_add_constraint_replaces_same_date(planner):
    planner.add_constraint(DayConstraint(date(2025, 10, 20), "exam", "Mid-sem"))
    planner.add_constraint(DayConstraint(date(2025, 10, 20), "holiday", "Diwali"))
    assert planner.config.constraints == [DayConstraint(date(2025, 10, 20), "holiday", "Diwali")]


def test_add_constraint_range_and_remove(planner):
    planner.add_constraint(DayConstraint(date(2025, 10, 21), "exam"))
    count = planner.add_constraint_range(date(2025, 10, 20), date(2025, 10, 24), "holiday", "Break")
    assert count == 5
    assert [c.type for c in planner.config.constraints] == ["holiday"] * 5
    assert planner.remove_constraint(date(2025, 10, 22))
    assert not planner.remove_constraint(date(2025, 10, 22))
    assert len(planner.config.constraints) == 4
    with pytest.raises(ValueError):
        planner.add_constraint_range(date(2025, 10, 24), date(2025, 10, 20), "holiday")


def test_invalid_changes_leave_config_untouched(planner):
    with pytest.raises(ConfigurationError):
        planner.set_lab_days(["someday"])
    assert planner.config.default_lab_days == ["tuesday", "thursday"]
    with pytest.raises(ConfigurationError):
        planner.add_constraint(DayConstraint(date(2025, 10, 20), "party"))
    assert planner.config.constraints == []


def test_progress_updates(planner, small_curriculum):
    planner.update_subtopic_progress("arrays", 0, True)
    planner.update_subtopic_progress("arrays", 1, True)
    planner.update_topic_progress("cpp-basics", True)
    planner.update_topic_progress("unknown-topic", True)
    assert completion_percentage(planner.progress, small_curriculum.get_topic("arrays")) == 50
    assert planner.progress.completed_topics == {"cpp-basics"}
    assert "unknown-topic" not in planner.progress.topics_progress


def test_update_session_counts_hours_once(planner):
    planner.update_session(StudySession("s1", date(2025, 7, 7), "arrays", 2.0))
    planner.update_session(StudySession("s1", date(2025, 7, 7), "arrays", 2.0, actual_hours=1.5, completed=True))
    planner.update_session(StudySession("s1", date(2025, 7, 7), "arrays", 2.0, actual_hours=1.5, completed=True))
    assert len(planner.plan.sessions) == 1
    assert planner.progress.total_hours_studied == 1.5


def test_persistent_planner_reloads(tmp_db, small_curriculum, config):
    planner = StudyPlanner(small_curriculum, db_path=tmp_db, config=config)
    planner.initialize()
    assert planner.persistent
    planner.update_subtopic_progress("arrays", 3, True)
    planner.add_constraint(DayConstraint(date(2025, 8, 15), "holiday"))
    planner.set_lab_days(["monday"])

    again = StudyPlanner(small_curriculum, db_path=tmp_db)
    plan = again.initialize()
    assert plan.id == planner.plan.id
    assert plan.config.default_lab_days == ["monday"]
    assert plan.config.constraint_for(date(2025, 8, 15)).type == "holiday"
    assert completion_percentage(plan.progress, small_curriculum.get_topic("arrays")) == 25


def test_unusable_database_path_degrades(tmp_path, small_curriculum, config):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    planner = StudyPlanner(small_curriculum, db_path=str(blocker / "planner.db"), config=config)
    planner.initialize()
    assert not planner.persistent
    planner.update_subtopic_progress("arrays", 0, True)
    assert planner.regenerate_schedule(date(2025, 7, 6)) is not None


def test_write_failure_degrades(tmp_db, small_curriculum, config):
    planner = StudyPlanner(small_curriculum, db_path=tmp_db, config=config)
    planner.initialize()
    with patch("prep_planner.planner.db.upsert_constraint", side_effect=sqlite3.OperationalError("locked")):
        planner.add_constraint(DayConstraint(date(2025, 8, 15), "holiday"))
    assert not planner.persistent
    assert planner.config.constraint_for(date(2025, 8, 15)) is not None


def test_orphaned_progress_pruned_on_load(tmp_db, small_curriculum, config):
    planner = StudyPlanner(small_curriculum, db_path=tmp_db, config=config)
    planner.initialize()
    from prep_planner.progress import set_subtopic_complete
    set_subtopic_complete(planner.progress, "retired-topic", 0, True)
    planner.sync()
    again = StudyPlanner(small_curriculum, db_path=tmp_db)
    assert "retired-topic" not in again.initialize().progress.topics_progress


def test_regenerate_schedule(planner):
    schedule = planner.regenerate_schedule(date(2025, 7, 21))
    assert planner.last_schedule is schedule
    assert not schedule.enriched
    assert len(schedule.scheduled_topics) == 3


def test_regenerate_refuses_reentry(planner):
    first = planner.regenerate_schedule(date(2025, 7, 21))
    planner._regenerating.acquire()
    try:
        assert planner.regenerate_schedule(date(2025, 8, 1)) is first
    finally:
        planner._regenerating.release()


def test_regenerate_with_enrichment(small_curriculum, config):
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace(
        message=SimpleNamespace(content=json.dumps({"recommendations": ["Finish DP this week"]})),
    )])
    planner = StudyPlanner(small_curriculum, enricher=ScheduleEnricher(client), config=config)
    planner.initialize()
    schedule = planner.regenerate_schedule(date(2025, 7, 21))
    assert schedule.enriched
    assert schedule.recommendations[0] == "Finish DP this week"
    payload = json.loads(client.chat.completions.create.call_args.kwargs["messages"][1]["content"])
    assert len(payload["remainingTopics"]) == 3


def test_daily_plan(planner):
    plan = planner.daily_plan(date(2025, 7, 26))
    assert plan.day_type == "weekend"
    assert plan.suggestions


def test_marking_topic_complete_removes_it_from_plans(planner, small_curriculum):
    planner.update_topic_progress("arrays", True)
    assert completion_percentage(planner.progress, small_curriculum.get_topic("arrays")) == 100
    schedule = planner.regenerate_schedule(date(2025, 7, 21))
    assert [st.topic_id for st in schedule.scheduled_topics] == ["dynamic-programming", "cpp-basics"]
    today = planner.daily_plan(date(2025, 7, 26))
    assert "arrays" not in [ts.topic_id for ts in today.suggestions]


def test_completing_every_subtopic_marks_topic(planner):
    for i in range(4):
        planner.update_subtopic_progress("arrays", i, True)
    assert planner.progress.completed_topics == {"arrays"}
    assert planner.progress.topics_progress["arrays"].completed
    planner.update_subtopic_progress("arrays", 0, False)
    assert planner.progress.completed_topics == set()
    assert not planner.progress.topics_progress["arrays"].completed


def test_topic_flag_survives_reload(tmp_db, small_curriculum, config):
    planner = StudyPlanner(small_curriculum, db_path=tmp_db, config=config)
    planner.initialize()
    planner.update_topic_progress("arrays", True)
    planner.update_topic_progress("cpp-basics", True)
    planner.update_subtopic_progress("cpp-basics", 5, False)

    plan = StudyPlanner(small_curriculum, db_path=tmp_db).initialize()
    assert plan.progress.completed_topics == {"arrays"}
    assert completion_percentage(plan.progress, small_curriculum.get_topic("arrays")) == 100
    assert completion_percentage(plan.progress, small_curriculum.get_topic("cpp-basics")) == 87.5


def test_out_of_range_subtopic_ignored(tmp_db, small_curriculum, config):
    planner = StudyPlanner(small_curriculum, db_path=tmp_db, config=config)
    planner.initialize()
    planner.update_subtopic_progress("arrays", 4, True)
    planner.update_subtopic_progress("arrays", -1, True)
    assert "arrays" not in planner.progress.topics_progress
    plan = StudyPlanner(small_curriculum, db_path=tmp_db).initialize()
    assert plan.progress.topics_progress == {}

# tests/test_models.py
from datetime import date

import pytest

from prep_planner.models import (
    ConfigurationError, DayConstraint, ScheduleConfig, StudySession, SubtopicProgress,
    TopicProgress, UserProgress, default_config,
)


def test_default_config():
    cfg = default_config()
    assert cfg.start_date == date(2025, 7, 6)
    assert cfg.end_date == date(2026, 1, 31)
    assert cfg.default_lab_days == ["tuesday", "thursday"]
    assert cfg.constraints == []
    assert cfg.college_hours["monday"] == {"start": "10:00", "end": "14:00"}


def test_config_accepts_iso_strings():
    cfg = ScheduleConfig(start_date="2025-07-06", end_date="2025-07-12")
    assert cfg.start_date == date(2025, 7, 6)


def test_config_rejects_reversed_range():
    with pytest.raises(ConfigurationError):
        ScheduleConfig(start_date=date(2025, 8, 1), end_date=date(2025, 7, 1))


def test_config_rejects_bad_date():
    with pytest.raises(ConfigurationError):
        ScheduleConfig(start_date="not-a-date", end_date="2025-07-01")


def test_config_rejects_unknown_lab_day():
    with pytest.raises(ConfigurationError):
        ScheduleConfig(date(2025, 7, 1), date(2025, 8, 1), default_lab_days=["funday"])


def test_config_normalizes_lab_day_case():
    cfg = ScheduleConfig(date(2025, 7, 1), date(2025, 8, 1), default_lab_days=["Monday"])
    assert cfg.default_lab_days == ["monday"]


def test_config_rejects_unknown_constraint_type():
    with pytest.raises(ConfigurationError):
        ScheduleConfig(date(2025, 7, 1), date(2025, 8, 1),
                       constraints=[DayConstraint(date(2025, 7, 2), "party")])


def test_config_rejects_duplicate_constraint_dates():
    with pytest.raises(ConfigurationError):
        ScheduleConfig(date(2025, 7, 1), date(2025, 8, 1), constraints=[
            DayConstraint(date(2025, 7, 2), "exam"),
            DayConstraint(date(2025, 7, 2), "holiday"),
        ])


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_config_round_trip():
    cfg = ScheduleConfig(
        date(2025, 7, 6), date(2025, 12, 31), default_lab_days=["wednesday"],
        constraints=[DayConstraint(date(2025, 10, 20), "exam", "Mid-sem")],
    )
    again = ScheduleConfig.from_dict(cfg.to_dict())
    assert again == cfg
    assert again.constraint_for(date(2025, 10, 20)).description == "Mid-sem"
    assert again.constraint_for(date(2025, 10, 21)) is None


def test_user_progress_round_trip():
    progress = UserProgress(
        completed_topics={"arrays"},
        topics_progress={"arrays": TopicProgress(
            topic_id="arrays", completed=True, completed_at="2025-07-10T10:00:00",
            subtopics_progress=[SubtopicProgress(0, True, "2025-07-09T10:00:00"), SubtopicProgress(1)],
        )},
        total_hours_studied=3.5,
    )
    again = UserProgress.from_dict(progress.to_dict())
    assert again == progress


def test_study_session_round_trip():
    session = StudySession(id="s1", date="2025-07-07", topic_id="arrays", planned_hours=2,
                           subtopic_indices=[0, 1], actual_hours=1.5, completed=True, notes="ok")
    assert session.date == date(2025, 7, 7)
    assert StudySession.from_dict(session.to_dict()) == session

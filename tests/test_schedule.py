# tests/test_schedule.py
from datetime import date, timedelta

from prep_planner.curriculum import load_curriculum
from prep_planner.days import generate_day_infos
from prep_planner.models import (
    DayConstraint, EnrichmentResult, ScheduleConfig, UserProgress, default_config,
)
from prep_planner.progress import set_subtopic_complete
from prep_planner.schedule import generate_full_schedule, weekly_schedule


def _complete_all(progress, curriculum):
    for _, topic in curriculum.topics():
        for i in range(len(topic.subtopics)):
            set_subtopic_complete(progress, topic.id, i, True)


def test_allocation_never_exceeds_available_hours():
    cur = load_curriculum()
    cfg = default_config()
    schedule = generate_full_schedule(cur, cfg, UserProgress(), cfg.start_date)
    available = sum(d.available_hours for d in generate_day_infos(cfg.start_date, cfg.end_date, cfg))
    allocated = sum(st.allocated_hours for st in schedule.scheduled_topics)
    assert allocated <= available
    assert schedule.completion_guarantee.available_hours == available
    assert len(schedule.scheduled_topics) == 30
    assert schedule.stats["total_available_hours"] == available


def test_critical_topics_skip_short_days(small_curriculum, config):
    # Monday of week 3: every topic is overdue and untouched
    schedule = generate_full_schedule(small_curriculum, config, UserProgress(), date(2025, 7, 21))
    by_id = {st.topic_id: st for st in schedule.scheduled_topics}
    assert [st.topic_id for st in schedule.scheduled_topics] == ["dynamic-programming", "arrays", "cpp-basics"]
    assert by_id["dynamic-programming"].days_allocated == [date(2025, 7, 21), date(2025, 7, 23), date(2025, 7, 25)]
    assert by_id["arrays"].days_allocated == [date(2025, 7, 25), date(2025, 7, 26)]
    assert by_id["cpp-basics"].days_allocated == [
        date(2025, 7, 27), date(2025, 7, 28), date(2025, 7, 30), date(2025, 8, 1),
    ]
    for st in schedule.scheduled_topics:
        assert st.urgency_level == "critical"
        assert st.allocated_hours == st.required_hours
        assert all(d.weekday() not in (1, 3) for d in st.days_allocated)
    guarantee = schedule.completion_guarantee
    assert guarantee.all_topics_covered
    assert guarantee.expected_completion_date == date(2025, 8, 1)
    assert "3 critical topic(s) behind schedule" in guarantee.risk_factors


def test_non_urgent_topics_use_short_days(small_curriculum, config):
    schedule = generate_full_schedule(small_curriculum, config, UserProgress(), config.start_date)
    first = schedule.scheduled_topics[0]
    assert first.topic_id == "cpp-basics"
    assert first.urgency_level == "medium"
    assert first.days_allocated == [date(2025, 7, 6), date(2025, 7, 7), date(2025, 7, 8), date(2025, 7, 9)]
    assert schedule.completion_guarantee.risk_factors == []


def test_schedule_starts_from_current_date(small_curriculum, config):
    schedule = generate_full_schedule(small_curriculum, config, UserProgress(), date(2025, 9, 1))
    for st in schedule.scheduled_topics:
        assert all(d >= date(2025, 9, 1) for d in st.days_allocated)


def test_everything_complete_gives_empty_schedule(small_curriculum, config):
    progress = UserProgress()
    _complete_all(progress, small_curriculum)
    schedule = generate_full_schedule(small_curriculum, config, progress, date(2025, 8, 1))
    assert schedule.scheduled_topics == []
    assert schedule.completion_guarantee.all_topics_covered
    assert schedule.completion_guarantee.expected_completion_date is None
    assert schedule.completion_guarantee.required_hours == 0


def test_no_available_hours(small_curriculum):
    start = date(2025, 7, 6)
    cfg = ScheduleConfig(start, start + timedelta(days=6), constraints=[
        DayConstraint(start + timedelta(days=i), "exam") for i in range(7)
    ])
    schedule = generate_full_schedule(small_curriculum, cfg, UserProgress(), start)
    assert all(st.allocated_hours == 0 for st in schedule.scheduled_topics)
    assert all(st.start_date is None for st in schedule.scheduled_topics)
    guarantee = schedule.completion_guarantee
    assert not guarantee.all_topics_covered
    assert guarantee.expected_completion_date is None
    assert guarantee.risk_factors[0].startswith("Study hours needed")
    assert schedule.stats["average_hours_per_day"] == 0.0


def test_many_exam_and_holiday_days_flagged(small_curriculum, config):
    cfg = ScheduleConfig(config.start_date, config.end_date, constraints=[
        DayConstraint(date(2025, 9, 1) + timedelta(days=i), "holiday") for i in range(21)
    ])
    schedule = generate_full_schedule(small_curriculum, cfg, UserProgress(), cfg.start_date)
    assert "21 exam/holiday days may impact the schedule" in schedule.completion_guarantee.risk_factors


def test_enrichment_is_merged_first(small_curriculum, config):
    enrichment = EnrichmentResult(recommendations=["Do DP first"], adjustments=["Shift arrays"])
    plain = generate_full_schedule(small_curriculum, config, UserProgress(), config.start_date)
    enriched = generate_full_schedule(small_curriculum, config, UserProgress(), config.start_date,
                                      enrichment=enrichment)
    assert not plain.enriched
    assert enriched.enriched
    assert enriched.recommendations == ["Do DP first"] + plain.recommendations
    assert enriched.adjustments == ["Shift arrays"] + plain.adjustments
    assert [st.topic_id for st in enriched.scheduled_topics] == [st.topic_id for st in plain.scheduled_topics]


def test_schedule_is_deterministic(small_curriculum, config):
    progress = UserProgress()
    set_subtopic_complete(progress, "arrays", 2, True)
    a = generate_full_schedule(small_curriculum, config, progress, date(2025, 7, 30))
    b = generate_full_schedule(small_curriculum, config, progress, date(2025, 7, 30))
    assert a == b


def test_weekly_schedule_groups_by_week(small_curriculum, config):
    schedule = generate_full_schedule(small_curriculum, config, UserProgress(), config.start_date)
    weeks = weekly_schedule(schedule.scheduled_topics)
    assert sorted(weeks) == [1, 2, 3]
    assert weeks[2][0].topic_id == "arrays"

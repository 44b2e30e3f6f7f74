# tests/test_dashboard.py
from prep_planner.curriculum import load_curriculum
from prep_planner.dashboard import (
    get_category_breakdown, get_progress_color, get_progress_label, get_study_stats,
    get_urgency_color, get_week_breakdown,
)
from prep_planner.models import StudyPlan, StudySession, UserProgress, default_config
from prep_planner.progress import set_subtopic_complete


def _complete_topic(progress, topic):
    for i in range(len(topic.subtopics)):
        set_subtopic_complete(progress, topic.id, i, True)


def test_progress_label():
    assert get_progress_label(100) == "DONE"
    assert get_progress_label(75) == "ON TRACK"
    assert get_progress_label(60) == "ON TRACK"
    assert get_progress_label(10) == "IN PROGRESS"
    assert get_progress_label(0) == "NOT STARTED"


def test_colors():
    assert get_progress_color(100) == "green"
    assert get_progress_color(0) == "red"
    assert get_urgency_color("critical") == "red"
    assert get_urgency_color("low") == "green"


def test_week_breakdown_covers_every_week():
    cur = load_curriculum()
    rows = get_week_breakdown(cur, UserProgress())
    assert [r["week_number"] for r in rows] == list(range(1, 31))
    assert all(r["label"] == "NOT STARTED" for r in rows)
    assert all(r["status"] == "not_started" for r in rows)


def test_week_breakdown_with_progress(small_curriculum):
    progress = UserProgress()
    _complete_topic(progress, small_curriculum.get_topic("arrays"))
    set_subtopic_complete(progress, "dynamic-programming", 0, True)
    rows = {r["week_number"]: r for r in get_week_breakdown(small_curriculum, progress)}
    assert rows[2]["label"] == "DONE"
    assert rows[2]["completed"] == 1
    assert rows[3]["percentage"] == 10.0
    assert rows[3]["status"] == "in_progress"


def test_category_breakdown_real_curriculum():
    cur = load_curriculum()
    rows = get_category_breakdown(cur, UserProgress())
    assert len(rows) == 8
    assert sum(r["total"] for r in rows) == 30
    assert sum(r["hours"] for r in rows) == cur.total_hours()


def test_category_breakdown_skips_empty_categories(small_curriculum):
    progress = UserProgress()
    _complete_topic(progress, small_curriculum.get_topic("arrays"))
    rows = {r["category"]: r for r in get_category_breakdown(small_curriculum, progress)}
    assert sorted(rows) == ["Algorithms", "Arrays and Strings", "Programming Fundamentals"]
    assert rows["Arrays and Strings"]["percentage"] == 100.0
    assert rows["Algorithms"]["label"] == "NOT STARTED"


def test_study_stats():
    cur = load_curriculum()
    plan = StudyPlan(id="p1", config=default_config())
    _complete_topic(plan.progress, cur.get_topic("arrays"))
    plan.progress.total_hours_studied = 12.34
    plan.sessions = [
        StudySession("s1", default_config().start_date, "arrays", 2.0, completed=True),
        StudySession("s2", default_config().start_date, "strings", 2.0),
    ]
    stats = get_study_stats(plan, cur)
    assert stats["topics_completed"] == 1
    assert stats["topics_total"] == 30
    assert stats["subtopics_done"] == len(cur.get_topic("arrays").subtopics)
    assert stats["subtopics_total"] == 250
    assert stats["hours_total"] == 770
    assert stats["hours_studied"] == 12.3
    assert stats["sessions_completed"] == 1
    assert stats["sessions_total"] == 2

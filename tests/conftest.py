from datetime import date

import pytest

from prep_planner.curriculum import curriculum_from_dict
from prep_planner.models import ScheduleConfig


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_planner.db")
    return db_path


def _topic(tid, n, hours):
    return {
        "id": tid,
        "title": tid.replace("-", " ").title(),
        "description": f"All about {tid}",
        "subtopics": [f"{tid} part {i}" for i in range(n)],
        "estimated_hours": hours,
        "practice_problems": n * 5,
    }


SMALL_CURRICULUM = {
    "weeks": [
        {"week_number": 1, "focus": "Basics", "topics": [_topic("cpp-basics", 8, 20)]},
        {"week_number": 2, "focus": "Arrays", "topics": [_topic("arrays", 4, 10)]},
        {"week_number": 3, "focus": "DP", "topics": [_topic("dynamic-programming", 10, 12)]},
    ]
}


@pytest.fixture
def small_curriculum():
    """Three one-topic weeks: cpp-basics, arrays, dynamic-programming."""
    return curriculum_from_dict(SMALL_CURRICULUM)


@pytest.fixture
def config():
    # 2025-07-06 is a Sunday
    return ScheduleConfig(start_date=date(2025, 7, 6), end_date=date(2025, 10, 31))

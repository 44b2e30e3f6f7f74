# tests/test_curriculum.py
import json

import pytest

from prep_planner.curriculum import CATEGORIES, curriculum_from_dict, load_curriculum


def test_packaged_curriculum_totals():
    cur = load_curriculum()
    assert cur.total_weeks == 30
    assert len(cur) == 30
    assert cur.total_hours() == 770
    assert cur.total_subtopics() == 250
    assert cur.total_problems() == 1405


def test_packaged_curriculum_order():
    cur = load_curriculum()
    pairs = cur.topics()
    assert pairs[0] == (1, cur.get_topic("programming-fundamentals"))
    assert pairs[-1][1].id == "final-revision"
    assert [w for w, _ in pairs] == list(range(1, 31))


def test_lookups():
    cur = load_curriculum()
    assert cur.week_of("dynamic-programming") == 18
    assert cur.get_topic("nope") is None
    assert cur.week_of("nope") is None
    assert cur.get_week(99) is None
    assert cur.topics_for_week(5)[0].id == "arrays"
    assert "arrays" in cur
    assert cur.recommendations_for_week(1)


def test_weekly_time_allocation():
    rows = load_curriculum().weekly_time_allocation()
    assert len(rows) == 30
    assert rows[0]["estimated_hours"] == 20
    assert rows[0]["time_allocation"].theory_pct == 60


def test_categories_cover_every_topic():
    cur = load_curriculum()
    grouped = [tid for ids in cur.topics_by_category().values() for tid in ids]
    assert sorted(grouped) == sorted(t.id for _, t in cur.topics())
    assert len(CATEGORIES) == 8


def test_duplicate_topic_id_rejected():
    data = {"weeks": [
        {"week_number": 1, "topics": [{"id": "a", "title": "A", "subtopics": ["x"], "estimated_hours": 1}]},
        {"week_number": 2, "topics": [{"id": "a", "title": "A", "subtopics": ["x"], "estimated_hours": 1}]},
    ]}
    with pytest.raises(ValueError):
        curriculum_from_dict(data)


def test_duplicate_week_rejected():
    topic = {"title": "T", "subtopics": [], "estimated_hours": 1}
    data = {"weeks": [
        {"week_number": 1, "topics": [dict(topic, id="a")]},
        {"week_number": 1, "topics": [dict(topic, id="b")]},
    ]}
    with pytest.raises(ValueError):
        curriculum_from_dict(data)


def test_load_custom_file(tmp_path):
    path = tmp_path / "mini.json"
    path.write_text(json.dumps({"weeks": [
        {"week_number": 1, "focus": "F", "topics": [
            {"id": "arrays", "title": "Arrays", "subtopics": ["1D", "2D"], "estimated_hours": 4},
        ]},
    ]}))
    cur = load_curriculum(str(path))
    assert cur.total_subtopics() == 2
    assert cur.topics_by_category()["Arrays and Strings"] == ["arrays"]
    assert cur.topics_by_category()["Algorithms"] == []

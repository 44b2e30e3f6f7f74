"""Static 30-week curriculum: weeks, topics and aggregate queries."""
import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

CONTENT_DIR = Path(__file__).parent / "content"

CATEGORIES = {
    "Programming Fundamentals": ["programming-fundamentals", "cpp-basics", "control-structures", "functions"],
    "Arrays and Strings": ["arrays", "strings", "pointers", "structures"],
    "Object-Oriented Programming": ["classes-objects", "inheritance", "polymorphism", "advanced-oop"],
    "Data Structures": ["linear-data-structures", "stacks-queues", "trees", "graphs"],
    "Algorithms": ["searching-sorting", "dynamic-programming", "greedy-algorithms", "backtracking-divide-conquer"],
    "System Concepts": ["dbms", "operating-system", "computer-networks", "software-engineering"],
    "Aptitude and Reasoning": ["quantitative-aptitude", "logical-reasoning", "verbal-ability"],
    "Advanced Topics": ["competitive-programming", "mock-tests", "final-revision"],
}


@dataclass(frozen=True)
class TimeAllocation:
    theory_pct: int
    coding_pct: int
    revision_pct: int


@dataclass(frozen=True)
class Topic:
    id: str
    title: str
    description: str
    subtopics: tuple[str, ...]
    estimated_hours: float
    practice_problems: int = 0
    study_tips: tuple[str, ...] = ()
    practice_strategy: str = ""


@dataclass(frozen=True)
class Week:
    week_number: int
    focus: str
    time_allocation: TimeAllocation
    topics: tuple[Topic, ...]
    recommendations: tuple[str, ...] = field(default=())


class Curriculum:
    """Immutable list of weeks with lookups by topic id and week number."""

    def __init__(self, weeks: list[Week]):
        self.weeks = tuple(sorted(weeks, key=lambda w: w.week_number))
        self._topics: dict[str, tuple[int, Topic]] = {}
        seen_weeks = set()
        for week in self.weeks:
            if week.week_number in seen_weeks:
                raise ValueError(f"Duplicate week number {week.week_number}")
            seen_weeks.add(week.week_number)
            for topic in week.topics:
                if topic.id in self._topics:
                    raise ValueError(f"Duplicate topic id {topic.id!r}")
                self._topics[topic.id] = (week.week_number, topic)

    def __len__(self) -> int:
        return len(self._topics)

    def __contains__(self, topic_id: str) -> bool:
        return topic_id in self._topics

    def topics(self) -> list[tuple[int, Topic]]:
        """All topics paired with their week number, in curriculum order."""
        return list(self._topics.values())

    def get_topic(self, topic_id: str) -> Topic | None:
        entry = self._topics.get(topic_id)
        return entry[1] if entry else None

    def week_of(self, topic_id: str) -> int | None:
        entry = self._topics.get(topic_id)
        return entry[0] if entry else None

    def get_week(self, week_number: int) -> Week | None:
        for week in self.weeks:
            if week.week_number == week_number:
                return week
        return None

    def topics_for_week(self, week_number: int) -> list[Topic]:
        week = self.get_week(week_number)
        return list(week.topics) if week else []

    @property
    def total_weeks(self) -> int:
        return len(self.weeks)

    def total_hours(self) -> float:
        return sum(t.estimated_hours for _, t in self.topics())

    def total_problems(self) -> int:
        return sum(t.practice_problems for _, t in self.topics())

    def total_subtopics(self) -> int:
        return sum(len(t.subtopics) for _, t in self.topics())

    def weekly_time_allocation(self) -> list[dict]:
        return [
            {
                "week": w.week_number,
                "focus": w.focus,
                "time_allocation": w.time_allocation,
                "estimated_hours": sum(t.estimated_hours for t in w.topics),
            }
            for w in self.weeks
        ]

    def recommendations_for_week(self, week_number: int) -> list[str]:
        week = self.get_week(week_number)
        return list(week.recommendations) if week else []

    def topics_by_category(self) -> dict[str, list[str]]:
        """Category name -> topic ids, limited to ids this curriculum defines."""
        return {
            name: [tid for tid in ids if tid in self]
            for name, ids in CATEGORIES.items()
        }


def curriculum_from_dict(data: dict) -> Curriculum:
    weeks = []
    for w in data["weeks"]:
        alloc = w.get("time_allocation", {})
        weeks.append(Week(
            week_number=int(w["week_number"]),
            focus=w.get("focus", ""),
            time_allocation=TimeAllocation(
                theory_pct=alloc.get("theory_pct", 0),
                coding_pct=alloc.get("coding_pct", 0),
                revision_pct=alloc.get("revision_pct", 0),
            ),
            recommendations=tuple(w.get("recommendations", [])),
            topics=tuple(
                Topic(
                    id=t["id"],
                    title=t["title"],
                    description=t.get("description", ""),
                    subtopics=tuple(t["subtopics"]),
                    estimated_hours=t["estimated_hours"],
                    practice_problems=t.get("practice_problems", 0),
                    study_tips=tuple(t.get("study_tips", [])),
                    practice_strategy=t.get("practice_strategy", ""),
                )
                for t in w["topics"]
            ),
        ))
    return Curriculum(weeks)


@lru_cache
def _load_default() -> Curriculum:
    data = json.loads((CONTENT_DIR / "curriculum.json").read_text(encoding="utf-8"))
    return curriculum_from_dict(data)


def load_curriculum(path: str | None = None) -> Curriculum:
    """Load the packaged curriculum, or a custom one from a JSON file."""
    if path is None:
        return _load_default()
    return curriculum_from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

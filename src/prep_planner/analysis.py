"""Topic urgency analysis and priority ordering."""
import math
from dataclasses import dataclass, field
from datetime import date, timedelta

from prep_planner.curriculum import Curriculum
from prep_planner.models import ScheduleConfig, TopicAnalysis, UserProgress
from prep_planner.progress import completed_subtopic_indices, completion_percentage

URGENCY_WEIGHTS = {"critical": 100, "high": 75, "medium": 50, "low": 25}
ON_TRACK_RATIO = 0.8


@dataclass
class SchedulingContext:
    current_week: int
    total_weeks: int
    days_remaining: int
    analyses: list[TopicAnalysis]
    weekly_progress: list[dict] = field(default_factory=list)
    urgent_topics: list[str] = field(default_factory=list)
    completed_topics: list[str] = field(default_factory=list)

    @property
    def on_track_percentage(self) -> float:
        if not self.analyses:
            return 100.0
        return sum(1 for a in self.analyses if a.is_on_track) / len(self.analyses) * 100


def current_week_number(current: date, start: date) -> int:
    return math.ceil((current - start).days / 7)


def urgency_level(week_number: int, current_week: int, percentage: float) -> str:
    if week_number <= current_week:
        if percentage < 50:
            return "critical"
        if percentage < 80:
            return "high"
        if percentage < 100:
            return "medium"
        return "low"
    if week_number == current_week + 1 and percentage < 20:
        return "medium"
    return "low"


def analyze_topics(curriculum: Curriculum, current_date: date, config: ScheduleConfig,
                   progress: UserProgress) -> list[TopicAnalysis]:
    """Analyze every curriculum topic. Progress for unknown topic ids is never read."""
    current_week = current_week_number(current_date, config.start_date)
    analyses = []
    for week_number, topic in curriculum.topics():
        pct = completion_percentage(progress, topic)
        expected = 100 if week_number <= current_week else 0
        due = config.start_date + timedelta(days=7 * week_number)
        done = len({i for i in completed_subtopic_indices(progress, topic.id) if 0 <= i < len(topic.subtopics)})
        analyses.append(TopicAnalysis(
            topic_id=topic.id,
            week_number=week_number,
            total_subtopics=len(topic.subtopics),
            completed_subtopics=done,
            completion_percentage=pct,
            is_on_track=pct >= expected * ON_TRACK_RATIO,
            urgency_level=urgency_level(week_number, current_week, pct),
            days_remaining=max(0, (due - current_date).days),
            estimated_completion_date=due,
        ))
    return analyses


def priority_score(analysis: TopicAnalysis, current_week: int) -> float:
    score = URGENCY_WEIGHTS[analysis.urgency_level]
    score += max(0, 25 - 5 * abs(analysis.week_number - current_week))
    score += 0.5 * (100 - analysis.completion_percentage)
    if not analysis.is_on_track:
        score += 30
    return score


def prioritize(analyses: list[TopicAnalysis], current_week: int) -> list[TopicAnalysis]:
    """Highest score first; equal scores keep curriculum order."""
    return sorted(analyses, key=lambda a: -priority_score(a, current_week))


def build_scheduling_context(curriculum: Curriculum, current_date: date, config: ScheduleConfig,
                             progress: UserProgress) -> SchedulingContext:
    analyses = analyze_topics(curriculum, current_date, config, progress)
    current_week = current_week_number(current_date, config.start_date)
    by_week: dict[int, list[TopicAnalysis]] = {}
    for a in analyses:
        by_week.setdefault(a.week_number, []).append(a)

    weekly = []
    for week_number in sorted(by_week):
        rows = by_week[week_number]
        completed = [a.topic_id for a in rows if a.completion_percentage == 100]
        pct = len(completed) / len(rows) * 100
        weekly.append({
            "week_number": week_number,
            "expected_topics": [a.topic_id for a in rows],
            "completed_topics": completed,
            "in_progress_topics": [a.topic_id for a in rows if 0 < a.completion_percentage < 100],
            "behind_schedule": week_number <= current_week and pct < 80,
            "completion_percentage": pct,
        })

    return SchedulingContext(
        current_week=current_week,
        total_weeks=current_week_number(config.end_date, config.start_date),
        days_remaining=max(0, (config.end_date - current_date).days),
        analyses=analyses,
        weekly_progress=weekly,
        urgent_topics=[a.topic_id for a in analyses if a.urgency_level in ("critical", "high")],
        completed_topics=[a.topic_id for a in analyses if a.completion_percentage == 100],
    )

"""Human-readable reasons, tips and schedule recommendations."""
from prep_planner.analysis import SchedulingContext
from prep_planner.curriculum import Topic
from prep_planner.models import DayInfo, TopicAnalysis

REASONS = {
    "critical": [
        "Critical topic - significantly behind schedule",
        "Urgent completion required to stay on track",
        "Essential foundation for the coming weeks",
    ],
    "high": [
        "High priority - needed for timely completion",
        "Important for maintaining study momentum",
        "Key concept for upcoming topics",
    ],
    "medium": [
        "Scheduled for this week's focus",
        "Building foundation for advanced concepts",
        "Progressing through planned curriculum",
    ],
    "low": [
        "Completing topic systematically",
        "Reinforcing fundamental concepts",
        "Maintaining consistent progress",
    ],
}

WEEK_TIPS = [
    (4, "Focus on understanding programming fundamentals thoroughly"),
    (8, "Practice implementing data structures from scratch"),
    (12, "Master object-oriented programming concepts"),
    (16, "Implement and practice data structure operations"),
    (20, "Solve algorithmic problems to build problem-solving skills"),
    (24, "Understand system concepts and their applications"),
    (27, "Practice aptitude questions with time constraints"),
]

DEFAULT_RECOMMENDATIONS = [
    "Focus on completing one topic at a time for better retention",
    "Maintain a consistent daily study schedule",
    "Track progress weekly to stay on target",
]

DEFAULT_ADJUSTMENTS = [
    "Prioritize urgent topics in daily study plans",
    "Use high-availability days for the heaviest topics",
    "Focus on weak areas identified in progress tracking",
]


def subtopic_reason(urgency: str, subtopic_index: int, current_week: int, total_weeks: int) -> str:
    options = REASONS.get(urgency, REASONS["medium"])
    reason = options[subtopic_index % len(options)]
    if 0 < current_week <= total_weeks:
        reason += f" (Week {current_week}/{total_weeks})"
    return reason


def subtopic_priority(index: int, topic: Topic, urgency: str) -> str:
    if urgency in ("critical", "high"):
        return "high"
    if index == 0:
        return "high"
    if index <= 2:
        return "medium"
    if "programming" in topic.id or "algorithm" in topic.id:
        return "high" if index <= 3 else "medium"
    return "low"


def day_tips(day_info: DayInfo, week_number: int) -> list[str]:
    tips = []
    for last_week, tip in WEEK_TIPS:
        if week_number <= last_week:
            tips.append(tip)
            break
    else:
        tips.append("Focus on mock tests and interview preparation")

    if day_info.type in ("weekend", "holiday", "available"):
        tips += [
            "Take advantage of extended time for complex topics",
            "Include practical coding exercises",
            "Review previous week's concepts",
        ]
    elif day_info.is_lab_day:
        tips += [
            "Focus on quick revision and light topics",
            "Use short breaks for concept review",
        ]
    elif day_info.type == "college":
        tips += [
            "Afternoon: study new concepts while still fresh",
            "Evening: practice problems and revision",
        ]
    elif day_info.type == "exam":
        tips += [
            "Light study only - avoid stressful topics",
            "Quick revision of familiar concepts",
        ]
    return tips


def context_tips(context: SchedulingContext) -> list[str]:
    tips = []
    if context.urgent_topics:
        tips.append(f"{len(context.urgent_topics)} topic(s) need urgent attention")

    on_track = context.on_track_percentage
    if on_track >= 80:
        tips.append("Great progress! You're on track with most topics")
    elif on_track >= 60:
        tips.append("Good progress, but focus on catching up with lagging topics")
    else:
        tips.append("Need to accelerate - prioritize incomplete topics")

    weeks_left = context.total_weeks - context.current_week
    if weeks_left <= 5:
        tips.append("Final stretch! Focus on revision and mock tests")
    elif weeks_left <= 10:
        tips.append("Time to intensify - prioritize weak areas")

    critical = sum(1 for a in context.analyses if a.urgency_level == "critical")
    high = sum(1 for a in context.analyses if a.urgency_level == "high")
    if critical:
        tips.append(f"{critical} critical topic(s) need immediate attention")
    if high:
        tips.append(f"{high} high-priority topic(s) require focus")
    if context.analyses and len(context.completed_topics) / len(context.analyses) < 0.5:
        tips.append("Increase daily study time to meet completion goals")
    return tips


def progress_recommendation(completed: int, total: int) -> str:
    pct = round(completed / total * 100) if total else 0
    if pct >= 80:
        return f"Excellent progress! {pct}% of topics completed"
    if pct >= 60:
        return f"Good progress: {pct}% completed, keep it up!"
    if pct >= 40:
        return f"Steady progress: {pct}% done, maintain momentum"
    if pct >= 20:
        return f"Building momentum: {pct}% completed, stay focused"
    return f"Starting strong: {pct}% completed, great beginning!"


def time_recommendation(needed: float, available: float) -> str:
    if available <= 0:
        return f"No study time available in range: {needed:g}h needed"
    ratio = needed / available
    if ratio <= 0.8:
        return f"Time allocation looks good: {needed:g}h needed vs {available:g}h available"
    if ratio <= 1.0:
        return f"Tight schedule: {needed:g}h needed vs {available:g}h available - stay focused"
    return f"Time challenge: {needed:g}h needed vs {available:g}h available - consider optimization"


def coverage_recommendation(analyses: list[TopicAnalysis]) -> str:
    if not analyses:
        return "No topics to cover"
    pct = round(sum(1 for a in analyses if a.is_on_track) / len(analyses) * 100)
    if pct >= 90:
        return f"Excellent coverage: {pct}% of topics on track"
    if pct >= 70:
        return f"Good coverage: {pct}% on track, focus on lagging topics"
    if pct >= 50:
        return f"Moderate coverage: {pct}% on track, need acceleration"
    return f"Coverage needs attention: {pct}% on track, prioritize urgent topics"


def constraint_adjustment(count: int) -> str:
    if count == 0:
        return "No constraints - maximum flexibility for scheduling"
    if count <= 5:
        return f"{count} constraint(s) - minimal impact on schedule"
    if count <= 15:
        return f"{count} constraint(s) - moderate schedule adjustments needed"
    return f"{count} constraint(s) - significant schedule optimization required"


def lab_day_adjustment(count: int) -> str:
    if count == 0:
        return "No lab days - full study time available on college days"
    if count <= 2:
        return f"{count} lab day(s) per week - schedule adjusted for limited time"
    return f"{count} lab day(s) per week - significant time optimization needed"


def urgency_adjustment(analyses: list[TopicAnalysis]) -> str:
    critical = sum(1 for a in analyses if a.urgency_level == "critical")
    high = sum(1 for a in analyses if a.urgency_level == "high")
    if critical == 0 and high == 0:
        return "No urgent topics - maintaining steady progress"
    if critical == 0:
        return f"{high} high-priority topic(s) - focus needed"
    return f"{critical} critical + {high} high-priority topic(s) - immediate attention required"


def time_adjustment(needed: float, available: float) -> str:
    if available <= 0:
        return "Schedule exceeds available time - optimization critical"
    load = needed / available * 100
    if load <= 70:
        return "Schedule has good time buffer for flexibility"
    if load <= 90:
        return "Schedule is well-optimized with minimal buffer"
    if load <= 100:
        return "Schedule is tightly packed - maintain consistency"
    return "Schedule exceeds available time - optimization critical"

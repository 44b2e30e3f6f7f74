"""Multi-week schedule: allocate remaining topics across the remaining days."""
import logging
from datetime import date

from prep_planner import advice
from prep_planner.analysis import analyze_topics, current_week_number, prioritize
from prep_planner.curriculum import Curriculum
from prep_planner.days import calculate_study_stats, generate_day_infos
from prep_planner.models import (
    CompletionGuarantee, DayInfo, EnrichmentResult, FullSchedule, ScheduleConfig,
    ScheduledTopic, TopicAnalysis, UserProgress,
)

logger = logging.getLogger(__name__)

COVERAGE_THRESHOLD = 0.95
LOW_HOUR_THRESHOLD = 3
LOOKAHEAD_DAYS = 30
HEAVY_CONSTRAINT_COUNT = 20


def allocate_topics(days: list[DayInfo], ranked: list[TopicAnalysis],
                    curriculum: Curriculum) -> list[ScheduledTopic]:
    """Greedy allocation over one shared, forward-only day cursor.

    A day's hours are drawn down by topics in priority order; whatever is left
    on a day carries over to the next topic. Critical and high topics pass over
    days with fewer than LOW_HOUR_THRESHOLD hours left while more than
    LOOKAHEAD_DAYS days remain after the cursor.
    """
    capacity = [d.available_hours for d in days]
    cursor = 0
    scheduled = []
    for analysis in ranked:
        topic = curriculum.get_topic(analysis.topic_id)
        required = topic.estimated_hours
        left = required
        touched: list[date] = []
        urgent = analysis.urgency_level in ("critical", "high")
        while left > 0 and cursor < len(days):
            if capacity[cursor] <= 0:
                cursor += 1
                continue
            if urgent and capacity[cursor] < LOW_HOUR_THRESHOLD and cursor < len(days) - LOOKAHEAD_DAYS:
                cursor += 1
                continue
            take = min(left, capacity[cursor])
            capacity[cursor] -= take
            left -= take
            touched.append(days[cursor].date)
            if capacity[cursor] <= 0:
                cursor += 1
        scheduled.append(ScheduledTopic(
            topic_id=topic.id,
            week_number=analysis.week_number,
            start_date=touched[0] if touched else None,
            end_date=touched[-1] if touched else None,
            allocated_hours=required - left,
            required_hours=required,
            days_allocated=touched,
            urgency_level=analysis.urgency_level,
            completion_percentage=analysis.completion_percentage,
        ))
    return scheduled


def completion_guarantee(scheduled: list[ScheduledTopic], days: list[DayInfo],
                         analyses: list[TopicAnalysis], config: ScheduleConfig) -> CompletionGuarantee:
    required = sum(st.required_hours for st in scheduled)
    allocated = sum(st.allocated_hours for st in scheduled)
    available = sum(d.available_hours for d in days)
    covered = allocated >= required * COVERAGE_THRESHOLD
    end_dates = [st.end_date for st in scheduled if st.end_date]

    risks, mitigations = [], []
    if required > available:
        risks.append(f"Study hours needed ({required:g}h) exceed available time ({available:g}h)")
        mitigations.append("Increase daily study hours or extend the timeline")
    critical = sum(1 for a in analyses if a.urgency_level == "critical")
    if critical:
        risks.append(f"{critical} critical topic(s) behind schedule")
        mitigations.append("Prioritize critical topics in daily study plans")
    heavy = sum(1 for c in config.constraints if c.type in ("exam", "holiday"))
    if heavy > HEAVY_CONSTRAINT_COUNT:
        risks.append(f"{heavy} exam/holiday days may impact the schedule")
        mitigations.append("Make the most of the remaining full study days")
    if covered:
        mitigations.append("Current schedule covers all remaining topics")
        mitigations.append("Maintain consistent daily progress to stay on track")
    else:
        mitigations.append("Consider extending the timeline or increasing daily hours")
        mitigations.append("Focus on high-priority topics first")

    return CompletionGuarantee(
        all_topics_covered=covered,
        expected_completion_date=max(end_dates) if end_dates else None,
        required_hours=required,
        allocated_hours=allocated,
        available_hours=available,
        risk_factors=risks,
        mitigation_strategies=mitigations,
    )


def remaining_analyses(analyses: list[TopicAnalysis], current_week: int) -> list[TopicAnalysis]:
    return [a for a in prioritize(analyses, current_week) if a.completion_percentage < 100]


def generate_full_schedule(curriculum: Curriculum, config: ScheduleConfig, progress: UserProgress,
                           current_date: date, enrichment: EnrichmentResult | None = None) -> FullSchedule:
    """Schedule every incomplete topic over [current_date, end_date]."""
    first_day = max(current_date, config.start_date)
    days = list(generate_day_infos(first_day, config.end_date, config))
    stats = calculate_study_stats(days)
    analyses = analyze_topics(curriculum, current_date, config, progress)
    current_week = current_week_number(current_date, config.start_date)
    ranked = remaining_analyses(analyses, current_week)

    scheduled = allocate_topics(days, ranked, curriculum)
    guarantee = completion_guarantee(scheduled, days, analyses, config)
    needed = guarantee.required_hours
    available = stats["total_available_hours"]
    completed = len(analyses) - len(ranked)

    recommendations = [
        advice.progress_recommendation(completed, len(analyses)),
        advice.time_recommendation(needed, available),
        advice.coverage_recommendation(analyses),
    ]
    adjustments = [
        advice.constraint_adjustment(len(config.constraints)),
        advice.lab_day_adjustment(len(config.default_lab_days)),
        advice.urgency_adjustment(analyses),
        advice.time_adjustment(needed, available),
    ]
    if enrichment is not None:
        recommendations = enrichment.recommendations + recommendations
        adjustments = enrichment.adjustments + adjustments

    logger.info(
        "Scheduled %d topic(s) over %d day(s): %.1fh of %.1fh required",
        len(scheduled), len(days), guarantee.allocated_hours, needed,
    )
    return FullSchedule(
        scheduled_topics=scheduled,
        completion_guarantee=guarantee,
        recommendations=recommendations,
        adjustments=adjustments,
        stats=stats,
        enrichment=enrichment,
    )


def weekly_schedule(scheduled: list[ScheduledTopic]) -> dict[int, list[ScheduledTopic]]:
    weeks: dict[int, list[ScheduledTopic]] = {}
    for st in scheduled:
        weeks.setdefault(st.week_number, []).append(st)
    return weeks

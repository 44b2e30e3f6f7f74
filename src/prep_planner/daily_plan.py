"""Daily study plan: which subtopics to study today and when."""
import logging
from datetime import date

from prep_planner.advice import context_tips, day_tips, subtopic_priority, subtopic_reason
from prep_planner.analysis import build_scheduling_context, prioritize
from prep_planner.curriculum import Curriculum, Topic
from prep_planner.days import day_info_for, study_windows
from prep_planner.models import (
    DailyStudySuggestion, DayInfo, ScheduleConfig, SubtopicSuggestion, TimeSlot,
    TopicSuggestion, UserProgress,
)
from prep_planner.progress import completed_subtopic_indices

logger = logging.getLogger(__name__)

MIN_BLOCK_MINUTES = 30
LAST_MINUTE = 23 * 60 + 59
# Used when the requested hours do not fit the day type's own windows
EXTENDED_WINDOWS = [("07:00", "12:00"), ("13:00", "18:00"), ("19:00", "23:30")]


def max_subtopics_per_day(available_hours: float) -> int:
    if available_hours >= 8:
        return 6
    if available_hours >= 6:
        return 4
    if available_hours >= 4:
        return 3
    if available_hours >= 2:
        return 2
    return 1


def minute_ceiling(topic: Topic) -> int:
    """Longest single block for a topic, by the kind of material it covers."""
    tid = topic.id
    if "programming" in tid or "cpp" in tid:
        return 120
    if "algorithm" in tid or "data-structure" in tid:
        return 90
    if "aptitude" in tid or "reasoning" in tid:
        return 60
    return 90


def minutes_per_subtopic(available_hours: float, count: int, topic: Topic) -> int:
    return min(minute_ceiling(topic), int(available_hours * 60 // count))


def break_minutes(block_minutes: int) -> int:
    return 10 if block_minutes <= 60 else 15


def to_minutes(hhmm: str) -> int:
    hours, mins = hhmm.split(":")
    return int(hours) * 60 + int(mins)


def to_hhmm(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def _fit_topic(candidates: int, hours: float, topic: Topic, used: int, budget: int,
               previous_block: int | None) -> tuple[int, int, int] | None:
    """Largest (count, minutes, cost) whose blocks and breaks fit the remaining budget."""
    lead = break_minutes(previous_block) if previous_block is not None else 0
    for count in range(candidates, 0, -1):
        minutes = minutes_per_subtopic(hours, count, topic)
        if minutes <= 0:
            continue
        cost = lead + count * minutes + (count - 1) * break_minutes(minutes)
        if used + cost <= budget:
            return count, minutes, cost
    # A shortened single block still counts if it is long enough to be useful
    remaining = budget - used - lead
    if remaining >= MIN_BLOCK_MINUTES:
        return 1, remaining, lead + remaining
    return None


def _windows_for(day_info: DayInfo, needed: int) -> list[tuple[int, int]]:
    windows = [(to_minutes(s), to_minutes(e)) for s, e in study_windows(day_info)]
    if needed > sum(end - start for start, end in windows):
        # More hours than the day type allows were requested
        windows = [(to_minutes(s), to_minutes(e)) for s, e in EXTENDED_WINDOWS]
    return windows


def layout_time_slots(suggestions: list[TopicSuggestion], day_info: DayInfo) -> None:
    """Assign chronological slots to every subtopic, with breaks between blocks.

    Subtopics whose block would run past midnight are dropped from the plan.
    """
    blocks = [(ts, sub) for ts in suggestions for sub in ts.subtopics]
    if not blocks:
        return
    needed = (sum(sub.estimated_minutes for _, sub in blocks)
              + sum(break_minutes(sub.estimated_minutes) for _, sub in blocks[:-1]))
    windows = _windows_for(day_info, needed)
    window = 0
    cursor = windows[0][0]
    for n, (ts, sub) in enumerate(blocks):
        while (window < len(windows) - 1
               and cursor + sub.estimated_minutes > windows[window][1]):
            window += 1
            cursor = max(cursor, windows[window][0])
        end = cursor + sub.estimated_minutes
        if end > LAST_MINUTE:
            logger.debug("Dropping %d subtopic(s) that do not fit before midnight", len(blocks) - n)
            for dropped_ts, dropped in blocks[n:]:
                dropped_ts.subtopics.remove(dropped)
            previous_ts = blocks[n - 1][0] if n else None
            if previous_ts is not None and previous_ts.time_slots[-1].activity == "Break":
                previous_ts.time_slots.pop()
            suggestions[:] = [s for s in suggestions if s.subtopics]
            return
        ts.time_slots.append(TimeSlot(to_hhmm(cursor), to_hhmm(end), f"Study: {sub.title}"))
        cursor = end
        if n < len(blocks) - 1:
            pause = break_minutes(sub.estimated_minutes)
            ts.time_slots.append(TimeSlot(to_hhmm(cursor), to_hhmm(cursor + pause), "Break"))
            cursor += pause


def generate_daily_plan(curriculum: Curriculum, day: date, config: ScheduleConfig,
                        progress: UserProgress, available_hours: float | None = None) -> DailyStudySuggestion:
    """Build the study plan for one day. Does not modify progress."""
    day_info = day_info_for(day, config)
    hours = day_info.available_hours if available_hours is None else available_hours
    context = build_scheduling_context(curriculum, day, config, progress)
    plan = DailyStudySuggestion(
        date=day,
        day_type=day_info.type,
        total_available_hours=hours,
        tips=context_tips(context) + day_tips(day_info, context.current_week),
    )
    if hours <= 0:
        return plan

    budget = int(hours * 60)
    ranked = prioritize(context.analyses, context.current_week)
    ranked = ranked[:max(1, int(hours // 2))]

    used = 0
    previous_block = None
    for analysis in ranked:
        if used >= budget:
            break
        topic = curriculum.get_topic(analysis.topic_id)
        done = completed_subtopic_indices(progress, topic.id)
        incomplete = [(i, title) for i, title in enumerate(topic.subtopics) if i not in done]
        if not incomplete:
            continue

        cap = max_subtopics_per_day(hours)
        if analysis.urgency_level == "critical":
            cap = min(cap + 2, len(incomplete))
        candidates = incomplete[:cap]

        fit = _fit_topic(len(candidates), hours, topic, used, budget, previous_block)
        if fit is None:
            break
        count, minutes, cost = fit
        used += cost
        previous_block = minutes

        plan.suggestions.append(TopicSuggestion(
            topic_id=topic.id,
            topic_title=topic.title,
            subtopics=[
                SubtopicSuggestion(
                    index=index,
                    title=title,
                    estimated_minutes=minutes,
                    priority=subtopic_priority(index, topic, analysis.urgency_level),
                    reason=subtopic_reason(
                        analysis.urgency_level, index, context.current_week, context.total_weeks,
                    ),
                )
                for index, title in candidates[:count]
            ],
        ))

    layout_time_slots(plan.suggestions, day_info)
    logger.debug("Daily plan for %s: %d topic(s), %d of %d minutes",
                 day, len(plan.suggestions), used, budget)
    return plan

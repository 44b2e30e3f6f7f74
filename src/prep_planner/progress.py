"""Per-user progress tracking over subtopic completion records."""
import logging
from datetime import datetime

from prep_planner.curriculum import Curriculum, Topic
from prep_planner.models import SubtopicProgress, TopicProgress, UserProgress

logger = logging.getLogger(__name__)


def _timestamp(now: datetime | None) -> str:
    return (now or datetime.now()).isoformat()


def _topic_progress(progress: UserProgress, topic_id: str) -> TopicProgress:
    tp = progress.topics_progress.get(topic_id)
    if tp is None:
        tp = TopicProgress(topic_id=topic_id)
        progress.topics_progress[topic_id] = tp
    return tp


def _sync_topic_flag(progress: UserProgress, tp: TopicProgress, subtopic_count: int, stamp: str) -> None:
    """Keep ``completed_topics`` and ``TopicProgress.completed`` in step with the subtopic records."""
    done = {sp.subtopic_index for sp in tp.subtopics_progress
            if sp.completed and 0 <= sp.subtopic_index < subtopic_count}
    complete = subtopic_count > 0 and len(done) == subtopic_count
    if complete == tp.completed:
        return
    if complete:
        progress.completed_topics.add(tp.topic_id)
        tp.completed = True
        tp.completed_at = stamp
    else:
        progress.completed_topics.discard(tp.topic_id)
        tp.completed = False
        tp.completed_at = None


def set_topic_complete(progress: UserProgress, topic: Topic, completed: bool,
                       now: datetime | None = None) -> None:
    """Mark or unmark a whole topic by marking every one of its subtopics."""
    for i in range(len(topic.subtopics)):
        set_subtopic_complete(progress, topic.id, i, completed, now=now, subtopic_count=len(topic.subtopics))


def set_subtopic_complete(progress: UserProgress, topic_id: str, subtopic_index: int,
                          completed: bool, now: datetime | None = None,
                          subtopic_count: int | None = None) -> None:
    """Upsert one subtopic record.

    With ``subtopic_count`` the topic-level flag follows the subtopics: it is set
    when the last one is completed and cleared when any is unmarked.
    """
    stamp = _timestamp(now)
    tp = _topic_progress(progress, topic_id)
    record = SubtopicProgress(
        subtopic_index=subtopic_index,
        completed=completed,
        completed_at=stamp if completed else None,
    )
    for i, existing in enumerate(tp.subtopics_progress):
        if existing.subtopic_index == subtopic_index:
            if existing.completed and completed:
                # Keep the original completion time on repeat calls
                record.completed_at = existing.completed_at
            tp.subtopics_progress[i] = record
            break
    else:
        tp.subtopics_progress.append(record)
    if subtopic_count is not None:
        _sync_topic_flag(progress, tp, subtopic_count, stamp)
    progress.last_updated = stamp


def completed_subtopic_indices(progress: UserProgress, topic_id: str) -> set[int]:
    tp = progress.topics_progress.get(topic_id)
    if tp is None:
        return set()
    return {sp.subtopic_index for sp in tp.subtopics_progress if sp.completed}


def completion_percentage(progress: UserProgress, topic: Topic) -> float:
    total = len(topic.subtopics)
    if total == 0:
        return 0.0
    done = sum(1 for i in completed_subtopic_indices(progress, topic.id) if 0 <= i < total)
    return done / total * 100


def is_topic_fully_complete(progress: UserProgress, topic: Topic) -> bool:
    return completion_percentage(progress, topic) == 100


def topic_status(progress: UserProgress, topic: Topic) -> str:
    pct = completion_percentage(progress, topic)
    if pct == 100:
        return "completed"
    if pct > 0:
        return "in_progress"
    return "not_started"


def week_completion(progress: UserProgress, curriculum: Curriculum, week_number: int) -> dict:
    topics = curriculum.topics_for_week(week_number)
    if not topics:
        return {"status": "not_applicable", "percentage": 0.0, "completed_count": 0, "total_count": 0}
    percentages = [completion_percentage(progress, t) for t in topics]
    average = sum(percentages) / len(topics)
    if average == 100:
        status = "completed"
    elif average > 0:
        status = "in_progress"
    else:
        status = "not_started"
    return {
        "status": status,
        "percentage": average,
        "completed_count": sum(1 for p in percentages if p == 100),
        "total_count": len(topics),
    }


def overall_completion(progress: UserProgress, curriculum: Curriculum) -> dict:
    topics = [t for _, t in curriculum.topics()]
    if not topics:
        return {"percentage": 0.0, "completed_count": 0, "total_count": 0, "subtopics_done": 0}
    percentages = [completion_percentage(progress, t) for t in topics]
    done = sum(
        len({i for i in completed_subtopic_indices(progress, t.id) if 0 <= i < len(t.subtopics)})
        for t in topics
    )
    return {
        "percentage": sum(percentages) / len(topics),
        "completed_count": sum(1 for p in percentages if p == 100),
        "total_count": len(topics),
        "subtopics_done": done,
    }


def record_study_hours(progress: UserProgress, hours: float, now: datetime | None = None) -> None:
    if hours < 0:
        raise ValueError("hours must be non-negative")
    progress.total_hours_studied += hours
    progress.last_updated = _timestamp(now)


def prune_orphans(progress: UserProgress, curriculum: Curriculum) -> list[str]:
    """Drop progress entries for topic ids the curriculum does not define."""
    orphans = sorted(
        {tid for tid in progress.topics_progress if tid not in curriculum}
        | {tid for tid in progress.completed_topics if tid not in curriculum}
    )
    for tid in orphans:
        logger.warning("Ignoring progress for unknown topic %s", tid)
        progress.topics_progress.pop(tid, None)
        progress.completed_topics.discard(tid)
    return orphans

"""Progress labels, breakdowns and study statistics for the dashboard."""
from prep_planner.curriculum import CATEGORIES, Curriculum
from prep_planner.models import StudyPlan, UserProgress
from prep_planner.progress import completion_percentage, overall_completion, week_completion


def get_progress_label(pct: float) -> str:
    if pct >= 100:
        return "DONE"
    elif pct >= 60:
        return "ON TRACK"
    elif pct > 0:
        return "IN PROGRESS"
    return "NOT STARTED"


def get_progress_color(pct: float) -> str:
    if pct >= 100:
        return "green"
    elif pct >= 60:
        return "yellow"
    elif pct > 0:
        return "dark_orange"
    return "red"


def get_urgency_color(level: str) -> str:
    return {"critical": "red", "high": "dark_orange", "medium": "yellow"}.get(level, "green")


def get_week_breakdown(curriculum: Curriculum, progress: UserProgress) -> list[dict]:
    rows = []
    for week in curriculum.weeks:
        wc = week_completion(progress, curriculum, week.week_number)
        rows.append({
            "week_number": week.week_number,
            "focus": week.focus,
            "percentage": round(wc["percentage"], 1),
            "status": wc["status"],
            "completed": wc["completed_count"],
            "total": wc["total_count"],
            "label": get_progress_label(wc["percentage"]),
        })
    return rows


def get_category_breakdown(curriculum: Curriculum, progress: UserProgress) -> list[dict]:
    results = []
    for name, ids in curriculum.topics_by_category().items():
        if not ids:
            continue
        topics = [curriculum.get_topic(tid) for tid in ids]
        percentages = [completion_percentage(progress, t) for t in topics]
        pct = sum(percentages) / len(topics)
        results.append({
            "category": name,
            "percentage": round(pct, 1),
            "completed": sum(1 for p in percentages if p == 100),
            "total": len(topics),
            "hours": sum(t.estimated_hours for t in topics),
            "label": get_progress_label(pct),
        })
    return results


def get_study_stats(plan: StudyPlan, curriculum: Curriculum) -> dict:
    overall = overall_completion(plan.progress, curriculum)
    done_sessions = [s for s in plan.sessions if s.completed]
    return {
        "overall_percentage": round(overall["percentage"], 1),
        "topics_completed": overall["completed_count"],
        "topics_total": overall["total_count"],
        "subtopics_done": overall["subtopics_done"],
        "subtopics_total": curriculum.total_subtopics(),
        "hours_studied": round(plan.progress.total_hours_studied, 1),
        "hours_total": curriculum.total_hours(),
        "sessions_completed": len(done_sessions),
        "sessions_total": len(plan.sessions),
        "categories": len(CATEGORIES),
    }

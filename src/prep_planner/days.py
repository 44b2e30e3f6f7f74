"""Day classification and available study hours."""
from datetime import date, timedelta
from typing import Iterator

from prep_planner.models import DayInfo, ScheduleConfig, WEEKDAY_NAMES

HOURS_BY_TYPE = {
    "holiday": 8,
    "weekend": 8,
    "available": 8,
    "college": 5,
    "lab": 2,
    "exam": 0,
}
LAB_DAY_HOURS = 2

# Study windows per day type; each type's windows add up to its hours.
DAY_WINDOWS = {
    "weekend": [("09:00", "12:00"), ("14:00", "17:00"), ("19:00", "21:00")],
    "holiday": [("09:00", "12:00"), ("14:00", "17:00"), ("19:00", "21:00")],
    "available": [("09:00", "12:00"), ("14:00", "17:00"), ("19:00", "21:00")],
    "college": [("15:30", "18:00"), ("19:00", "21:30")],
    "lab": [("18:00", "20:00")],
    "exam": [("18:00", "19:00")],
}


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def classify_day(day: date, config: ScheduleConfig) -> str:
    constraint = config.constraint_for(day)
    if constraint:
        return constraint.type
    if day.weekday() >= 5:
        return "weekend"
    if weekday_name(day) in config.default_lab_days:
        return "lab"
    return "college"


def is_lab_day(day_type: str, day_name: str, config: ScheduleConfig) -> bool:
    """A lab day is a `lab` day, or a `college` day on a default lab weekday."""
    if day_type == "lab":
        return True
    return day_type == "college" and day_name in config.default_lab_days


def available_hours(day_info: DayInfo) -> float:
    if day_info.type == "college" and day_info.is_lab_day:
        return LAB_DAY_HOURS
    return HOURS_BY_TYPE.get(day_info.type, 0)


def day_info_for(day: date, config: ScheduleConfig) -> DayInfo:
    day_type = classify_day(day, config)
    info = DayInfo(
        date=day,
        day_of_week=(day.weekday() + 1) % 7,
        type=day_type,
        available_hours=0,
        is_lab_day=is_lab_day(day_type, weekday_name(day), config),
        constraint=config.constraint_for(day),
    )
    info.available_hours = available_hours(info)
    return info


def generate_day_infos(start: date, end: date, config: ScheduleConfig) -> Iterator[DayInfo]:
    """Yield one DayInfo per calendar day from start to end inclusive."""
    day = start
    while day <= end:
        yield day_info_for(day, config)
        day += timedelta(days=1)


def study_windows(day_info: DayInfo) -> list[tuple[str, str]]:
    if day_info.type == "college" and day_info.is_lab_day:
        return DAY_WINDOWS["lab"]
    return DAY_WINDOWS.get(day_info.type, [("09:00", "12:00")])


def calculate_study_stats(days: list[DayInfo]) -> dict:
    total_hours = sum(d.available_hours for d in days)
    study_days = sum(1 for d in days if d.available_hours > 0)
    return {
        "total_available_hours": total_hours,
        "total_days": len(days),
        "study_days": study_days,
        "exam_days": sum(1 for d in days if d.type == "exam"),
        "holidays": sum(1 for d in days if d.type == "holiday"),
        "weekends": sum(1 for d in days if d.type == "weekend"),
        "lab_days": sum(1 for d in days if d.is_lab_day),
        "average_hours_per_day": round(total_hours / study_days, 2) if study_days else 0.0,
    }

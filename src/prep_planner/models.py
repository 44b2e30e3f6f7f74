"""Data classes for the study planner domain model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

DAY_TYPES = ("college", "lab", "holiday", "exam", "weekend", "available")
URGENCY_LEVELS = ("critical", "high", "medium", "low")
WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class ConfigurationError(ValueError):
    """Raised when a schedule configuration cannot be used."""


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _now() -> str:
    return datetime.now().isoformat()


@dataclass
class DayConstraint:
    date: date
    type: str
    description: str = ""

    def __post_init__(self):
        self.date = _as_date(self.date)

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "type": self.type, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> "DayConstraint":
        return cls(date=data["date"], type=data["type"], description=data.get("description") or "")


@dataclass
class ScheduleConfig:
    start_date: date
    end_date: date
    default_lab_days: list[str] = field(default_factory=lambda: ["tuesday", "thursday"])
    constraints: list[DayConstraint] = field(default_factory=list)
    college_hours: dict = field(default_factory=lambda: {
        day: {"start": "10:00", "end": "14:00"} for day in WEEKDAY_NAMES[:6]
    })

    def __post_init__(self):
        try:
            self.start_date = _as_date(self.start_date)
            self.end_date = _as_date(self.end_date)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid plan date: {e}") from e
        if self.start_date > self.end_date:
            raise ConfigurationError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        self.default_lab_days = [d.lower() for d in self.default_lab_days]
        for day in self.default_lab_days:
            if day not in WEEKDAY_NAMES:
                raise ConfigurationError(f"Unknown lab day: {day}")
        seen = set()
        for c in self.constraints:
            if c.type not in DAY_TYPES:
                raise ConfigurationError(f"Unknown day type {c.type!r} for {c.date}")
            if c.date in seen:
                raise ConfigurationError(f"Duplicate constraint for {c.date}")
            seen.add(c.date)

    def constraint_for(self, day: date) -> DayConstraint | None:
        for c in self.constraints:
            if c.date == day:
                return c
        return None

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "default_lab_days": list(self.default_lab_days),
            "constraints": [c.to_dict() for c in self.constraints],
            "college_hours": self.college_hours,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduleConfig":
        kwargs = {
            "start_date": data["start_date"],
            "end_date": data["end_date"],
            "default_lab_days": data.get("default_lab_days", []),
            "constraints": [DayConstraint.from_dict(c) for c in data.get("constraints", [])],
        }
        if data.get("college_hours"):
            kwargs["college_hours"] = data["college_hours"]
        return cls(**kwargs)


def default_config() -> ScheduleConfig:
    return ScheduleConfig(start_date=date(2025, 7, 6), end_date=date(2026, 1, 31))


@dataclass
class SubtopicProgress:
    subtopic_index: int
    completed: bool = False
    completed_at: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "subtopic_index": self.subtopic_index,
            "completed": self.completed,
            "completed_at": self.completed_at,
        }


@dataclass
class TopicProgress:
    topic_id: str
    completed: bool = False
    completed_at: Optional[str] = None
    subtopics_progress: list[SubtopicProgress] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "topic_id": self.topic_id,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "subtopics_progress": [sp.to_dict() for sp in self.subtopics_progress],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TopicProgress":
        return cls(
            topic_id=data["topic_id"],
            completed=bool(data.get("completed")),
            completed_at=data.get("completed_at"),
            subtopics_progress=[
                SubtopicProgress(
                    subtopic_index=int(sp["subtopic_index"]),
                    completed=bool(sp.get("completed")),
                    completed_at=sp.get("completed_at"),
                )
                for sp in data.get("subtopics_progress", [])
            ],
        )


@dataclass
class UserProgress:
    completed_topics: set[str] = field(default_factory=set)
    topics_progress: dict[str, TopicProgress] = field(default_factory=dict)
    total_hours_studied: float = 0.0
    last_updated: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "completed_topics": sorted(self.completed_topics),
            "topics_progress": {k: v.to_dict() for k, v in self.topics_progress.items()},
            "total_hours_studied": self.total_hours_studied,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProgress":
        return cls(
            completed_topics=set(data.get("completed_topics", [])),
            topics_progress={
                k: TopicProgress.from_dict(v) for k, v in (data.get("topics_progress") or {}).items()
            },
            total_hours_studied=float(data.get("total_hours_studied") or 0),
            last_updated=data.get("last_updated") or _now(),
        )


@dataclass
class DayInfo:
    date: date
    day_of_week: int  # 0=Sunday .. 6=Saturday
    type: str
    available_hours: float
    is_lab_day: bool = False
    constraint: Optional[DayConstraint] = None

    @property
    def date_string(self) -> str:
        return self.date.isoformat()


@dataclass
class TopicAnalysis:
    topic_id: str
    week_number: int
    total_subtopics: int
    completed_subtopics: int
    completion_percentage: float
    is_on_track: bool
    urgency_level: str
    days_remaining: int
    estimated_completion_date: date

    def to_dict(self) -> dict:
        return {
            "topicId": self.topic_id,
            "weekNumber": self.week_number,
            "completionPercentage": round(self.completion_percentage, 1),
            "urgencyLevel": self.urgency_level,
        }


@dataclass
class ScheduledTopic:
    topic_id: str
    week_number: int
    start_date: Optional[date]
    end_date: Optional[date]
    allocated_hours: float
    required_hours: float
    days_allocated: list[date] = field(default_factory=list)
    urgency_level: str = "low"
    completion_percentage: float = 0.0


@dataclass
class SubtopicSuggestion:
    index: int
    title: str
    estimated_minutes: int
    priority: str
    reason: str


@dataclass
class TimeSlot:
    start: str  # "HH:MM"
    end: str
    activity: str


@dataclass
class TopicSuggestion:
    topic_id: str
    topic_title: str
    subtopics: list[SubtopicSuggestion] = field(default_factory=list)
    time_slots: list[TimeSlot] = field(default_factory=list)


@dataclass
class DailyStudySuggestion:
    date: date
    day_type: str
    total_available_hours: float
    suggestions: list[TopicSuggestion] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return sum(s.estimated_minutes for t in self.suggestions for s in t.subtopics)


@dataclass
class CompletionGuarantee:
    all_topics_covered: bool
    expected_completion_date: Optional[date]
    required_hours: float
    allocated_hours: float
    available_hours: float
    risk_factors: list[str] = field(default_factory=list)
    mitigation_strategies: list[str] = field(default_factory=list)


@dataclass
class EnrichmentResult:
    topic_order: list[str] = field(default_factory=list)
    priority_groups: dict[str, list[str]] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)
    adjustments: list[str] = field(default_factory=list)
    completion_strategy: dict = field(default_factory=dict)


@dataclass
class FullSchedule:
    scheduled_topics: list[ScheduledTopic]
    completion_guarantee: CompletionGuarantee
    recommendations: list[str] = field(default_factory=list)
    adjustments: list[str] = field(default_factory=list)
    stats: dict = field(default_factory=dict)
    enrichment: Optional[EnrichmentResult] = None

    @property
    def enriched(self) -> bool:
        return self.enrichment is not None


@dataclass
class StudySession:
    id: str
    date: date
    topic_id: str
    planned_hours: float
    subtopic_indices: list[int] = field(default_factory=list)
    actual_hours: Optional[float] = None
    completed: bool = False
    notes: str = ""

    def __post_init__(self):
        self.date = _as_date(self.date)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "topic_id": self.topic_id,
            "planned_hours": self.planned_hours,
            "subtopic_indices": list(self.subtopic_indices),
            "actual_hours": self.actual_hours,
            "completed": self.completed,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StudySession":
        return cls(
            id=data["id"],
            date=data["date"],
            topic_id=data["topic_id"],
            planned_hours=float(data.get("planned_hours") or 0),
            subtopic_indices=list(data.get("subtopic_indices") or []),
            actual_hours=data.get("actual_hours"),
            completed=bool(data.get("completed")),
            notes=data.get("notes") or "",
        )


@dataclass
class StudyPlan:
    id: str
    config: ScheduleConfig
    progress: UserProgress = field(default_factory=UserProgress)
    sessions: list[StudySession] = field(default_factory=list)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

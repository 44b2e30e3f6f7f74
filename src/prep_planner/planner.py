"""Study plan service: owns one plan in memory and mirrors changes to SQLite."""
import dataclasses
import logging
import sqlite3
import threading
import uuid
from datetime import date, timedelta

from prep_planner import db
from prep_planner.analysis import analyze_topics, current_week_number
from prep_planner.curriculum import Curriculum, Topic
from prep_planner.daily_plan import generate_daily_plan
from prep_planner.enrichment import ScheduleEnricher, build_enrichment_payload
from prep_planner.models import (
    DailyStudySuggestion, DayConstraint, FullSchedule, ScheduleConfig, StudyPlan, StudySession,
    default_config,
)
from prep_planner.progress import (
    prune_orphans, record_study_hours, set_subtopic_complete, set_topic_complete,
)
from prep_planner.schedule import generate_full_schedule, remaining_analyses

logger = logging.getLogger(__name__)


class StudyPlanner:
    """In-memory owner of a StudyPlan.

    With a ``db_path`` every change is written through to SQLite. A failing
    database is logged once and the planner carries on in memory only.
    """

    def __init__(self, curriculum: Curriculum, db_path: str | None = None,
                 enricher: ScheduleEnricher | None = None, config: ScheduleConfig | None = None):
        self.curriculum = curriculum
        self.db_path = db_path
        self.enricher = enricher or ScheduleEnricher(None)
        self.plan = StudyPlan(id=str(uuid.uuid4()), config=config or default_config())
        self.last_schedule: FullSchedule | None = None
        self._regenerating = threading.Lock()

    @property
    def persistent(self) -> bool:
        return self.db_path is not None

    @property
    def config(self) -> ScheduleConfig:
        return self.plan.config

    @property
    def progress(self):
        return self.plan.progress

    def _persist(self, fn, *args) -> bool:
        if self.db_path is None:
            return False
        try:
            fn(self.db_path, *args)
        except (sqlite3.Error, OSError) as e:
            logger.error("Persistence failed, continuing in memory only: %s", e)
            self.db_path = None
            return False
        return True

    def initialize(self) -> StudyPlan:
        """Load the stored plan, or create one from the current config."""
        if self.db_path is not None:
            try:
                db.init_db(self.db_path)
                self.plan = db.get_or_create_plan(self.db_path, self.plan.config)
            except (sqlite3.Error, OSError) as e:
                logger.error("Could not open plan database %s, using memory only: %s", self.db_path, e)
                self.db_path = None
        orphans = prune_orphans(self.plan.progress, self.curriculum)
        if orphans:
            logger.info("Pruned %d orphaned progress entries", len(orphans))
        return self.plan

    def _replace_config(self, **changes) -> None:
        # dataclasses.replace re-runs validation; a bad change leaves the plan untouched
        self.plan.config = dataclasses.replace(self.plan.config, **changes)

    def add_constraint(self, constraint: DayConstraint) -> None:
        """Add a constraint, replacing any existing one on the same date."""
        others = [c for c in self.config.constraints if c.date != constraint.date]
        self._replace_config(constraints=sorted(others + [constraint], key=lambda c: c.date))
        self._persist(db.upsert_constraint, self.plan.id, constraint)
        logger.debug("Constraint %s on %s", constraint.type, constraint.date)

    def add_constraint_range(self, start: date, end: date, day_type: str, description: str = "") -> int:
        """Apply the same constraint to every day from start to end inclusive."""
        if start > end:
            raise ValueError(f"start {start} is after end {end}")
        new = []
        day = start
        while day <= end:
            new.append(DayConstraint(date=day, type=day_type, description=description))
            day += timedelta(days=1)
        dates = {c.date for c in new}
        others = [c for c in self.config.constraints if c.date not in dates]
        self._replace_config(constraints=sorted(others + new, key=lambda c: c.date))
        for c in new:
            if not self._persist(db.upsert_constraint, self.plan.id, c):
                break
        return len(new)

    def remove_constraint(self, day: date) -> bool:
        kept = [c for c in self.config.constraints if c.date != day]
        if len(kept) == len(self.config.constraints):
            return False
        self._replace_config(constraints=kept)
        self._persist(db.delete_constraint, self.plan.id, day)
        return True

    def set_lab_days(self, days: list[str]) -> None:
        self._replace_config(default_lab_days=list(days))
        self._persist(db.save_plan, self.plan)

    def _known_topic(self, topic_id: str) -> Topic | None:
        topic = self.curriculum.get_topic(topic_id)
        if topic is None:
            logger.warning("Ignoring progress for unknown topic %s", topic_id)
        return topic

    def update_topic_progress(self, topic_id: str, completed: bool) -> None:
        """Mark or unmark every subtopic of a topic; the topic flag follows."""
        topic = self._known_topic(topic_id)
        if topic is None:
            return
        set_topic_complete(self.progress, topic, completed)
        tp = self.progress.topics_progress.get(topic_id)
        if tp is not None:
            self._persist(db.upsert_topic_progress, self.plan.id, tp)

    def update_subtopic_progress(self, topic_id: str, subtopic_index: int, completed: bool) -> None:
        topic = self._known_topic(topic_id)
        if topic is None:
            return
        if not 0 <= subtopic_index < len(topic.subtopics):
            logger.warning("Ignoring progress for %s subtopic %d: out of range", topic_id, subtopic_index)
            return
        previous = self.progress.topics_progress.get(topic_id)
        was_complete = previous is not None and previous.completed
        set_subtopic_complete(self.progress, topic_id, subtopic_index, completed,
                              subtopic_count=len(topic.subtopics))
        tp = self.progress.topics_progress[topic_id]
        if tp.completed != was_complete:
            self._persist(db.upsert_topic_progress, self.plan.id, tp)
            return
        record = next(sp for sp in tp.subtopics_progress if sp.subtopic_index == subtopic_index)
        self._persist(db.upsert_subtopic_progress, self.plan.id, topic_id, record)

    def update_session(self, session: StudySession) -> None:
        """Insert or replace a session by id. Completing one adds its actual hours."""
        previous = next((s for s in self.plan.sessions if s.id == session.id), None)
        if previous is None:
            self.plan.sessions.append(session)
        else:
            self.plan.sessions[self.plan.sessions.index(previous)] = session
        newly_done = session.completed and not (previous and previous.completed)
        if newly_done and session.actual_hours:
            record_study_hours(self.progress, session.actual_hours)
            self._persist(db.save_plan, self.plan)
        else:
            self._persist(db.upsert_session, self.plan.id, session)

    def daily_plan(self, day: date | None = None) -> DailyStudySuggestion:
        plan = generate_daily_plan(self.curriculum, day or date.today(), self.config, self.progress)
        return self.enricher.enrich_daily_tips(plan)

    def regenerate_schedule(self, current_date: date | None = None) -> FullSchedule | None:
        """Rebuild the multi-week schedule. A call made while one is running gets the last result."""
        if not self._regenerating.acquire(blocking=False):
            logger.warning("Schedule regeneration already in progress")
            return self.last_schedule
        try:
            today = current_date or date.today()
            enrichment = None
            if self.enricher.enabled:
                analyses = analyze_topics(self.curriculum, today, self.config, self.progress)
                week = current_week_number(today, self.config.start_date)
                remaining_ids = [a.topic_id for a in remaining_analyses(analyses, week)]
                payload = build_enrichment_payload(self.curriculum, self.config, self.progress, analyses)
                enrichment = self.enricher.enrich_schedule(payload, remaining_ids, analyses)
            self.last_schedule = generate_full_schedule(
                self.curriculum, self.config, self.progress, today, enrichment=enrichment,
            )
            return self.last_schedule
        finally:
            self._regenerating.release()

    def sync(self) -> bool:
        """Write the full plan to the database. False when running in memory."""
        return self._persist(db.save_plan, self.plan)

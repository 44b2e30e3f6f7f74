"""Database initialization, connection management and plan persistence."""
import json
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path

from prep_planner.config import DEFAULT_DB_PATH
from prep_planner.models import (
    DayConstraint, ScheduleConfig, StudyPlan, StudySession, SubtopicProgress, TopicProgress,
    UserProgress,
)

SCHEMA = """
CREATE TABLE IF NOT EXISTS study_plans (
    id TEXT PRIMARY KEY,
    config TEXT NOT NULL,
    total_hours_studied REAL DEFAULT 0,
    last_updated TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS progress (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    study_plan_id TEXT NOT NULL REFERENCES study_plans(id) ON DELETE CASCADE,
    topic_id TEXT NOT NULL,
    subtopic_index INTEGER,
    completed INTEGER DEFAULT 0,
    completed_at TEXT,
    UNIQUE(study_plan_id, topic_id, subtopic_index)
);

CREATE TABLE IF NOT EXISTS constraints (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    study_plan_id TEXT NOT NULL REFERENCES study_plans(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    type TEXT NOT NULL,
    description TEXT,
    UNIQUE(study_plan_id, date)
);

CREATE TABLE IF NOT EXISTS study_sessions (
    id TEXT PRIMARY KEY,
    study_plan_id TEXT NOT NULL REFERENCES study_plans(id) ON DELETE CASCADE,
    date TEXT NOT NULL,
    topic_id TEXT NOT NULL,
    planned_hours REAL DEFAULT 0,
    subtopic_indices TEXT,
    actual_hours REAL,
    completed INTEGER DEFAULT 0,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def get_setting(db_path: str, key: str, default: str | None = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def _config_json(config: ScheduleConfig) -> str:
    data = config.to_dict()
    # Constraints live in their own table
    data.pop("constraints")
    return json.dumps(data)


def _write_topic_row(conn: sqlite3.Connection, plan_id: str, tp: TopicProgress) -> None:
    cur = conn.execute(
        """UPDATE progress SET completed = ?, completed_at = ?
        WHERE study_plan_id = ? AND topic_id = ? AND subtopic_index IS NULL""",
        (int(tp.completed), tp.completed_at, plan_id, tp.topic_id),
    )
    if cur.rowcount == 0:
        conn.execute(
            """INSERT INTO progress (study_plan_id, topic_id, subtopic_index, completed, completed_at)
            VALUES (?, ?, NULL, ?, ?)""",
            (plan_id, tp.topic_id, int(tp.completed), tp.completed_at),
        )


def _write_subtopic_row(conn: sqlite3.Connection, plan_id: str, topic_id: str, sp: SubtopicProgress) -> None:
    conn.execute(
        """INSERT INTO progress (study_plan_id, topic_id, subtopic_index, completed, completed_at)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(study_plan_id, topic_id, subtopic_index)
        DO UPDATE SET completed = excluded.completed, completed_at = excluded.completed_at""",
        (plan_id, topic_id, sp.subtopic_index, int(sp.completed), sp.completed_at),
    )


def _write_session(conn: sqlite3.Connection, plan_id: str, session: StudySession) -> None:
    conn.execute(
        """INSERT INTO study_sessions
        (id, study_plan_id, date, topic_id, planned_hours, subtopic_indices, actual_hours, completed, notes)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            date = excluded.date, topic_id = excluded.topic_id,
            planned_hours = excluded.planned_hours, subtopic_indices = excluded.subtopic_indices,
            actual_hours = excluded.actual_hours, completed = excluded.completed, notes = excluded.notes""",
        (
            session.id, plan_id, session.date.isoformat(), session.topic_id, session.planned_hours,
            json.dumps(session.subtopic_indices), session.actual_hours, int(session.completed),
            session.notes,
        ),
    )


def save_plan(db_path: str, plan: StudyPlan) -> None:
    """Write the whole plan. Constraints are replaced; everything else is upserted."""
    plan.updated_at = datetime.now().isoformat()
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO study_plans (id, config, total_hours_studied, last_updated, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            config = excluded.config, total_hours_studied = excluded.total_hours_studied,
            last_updated = excluded.last_updated, updated_at = excluded.updated_at""",
        (
            plan.id, _config_json(plan.config), plan.progress.total_hours_studied,
            plan.progress.last_updated, plan.created_at, plan.updated_at,
        ),
    )
    conn.execute("DELETE FROM constraints WHERE study_plan_id = ?", (plan.id,))
    conn.executemany(
        "INSERT INTO constraints (study_plan_id, date, type, description) VALUES (?, ?, ?, ?)",
        [(plan.id, c.date.isoformat(), c.type, c.description) for c in plan.config.constraints],
    )
    for tp in plan.progress.topics_progress.values():
        _write_topic_row(conn, plan.id, tp)
        for sp in tp.subtopics_progress:
            _write_subtopic_row(conn, plan.id, tp.topic_id, sp)
    for session in plan.sessions:
        _write_session(conn, plan.id, session)
    conn.commit()
    conn.close()


def load_plan(db_path: str, plan_id: str) -> StudyPlan | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM study_plans WHERE id = ?", (plan_id,)).fetchone()
    if row is None:
        conn.close()
        return None
    constraints = conn.execute(
        "SELECT date, type, description FROM constraints WHERE study_plan_id = ? ORDER BY date",
        (plan_id,),
    ).fetchall()
    progress_rows = conn.execute(
        "SELECT * FROM progress WHERE study_plan_id = ? ORDER BY topic_id, subtopic_index",
        (plan_id,),
    ).fetchall()
    session_rows = conn.execute(
        "SELECT * FROM study_sessions WHERE study_plan_id = ? ORDER BY date, id",
        (plan_id,),
    ).fetchall()
    conn.close()

    config_data = json.loads(row["config"])
    config_data["constraints"] = [dict(c) for c in constraints]
    config = ScheduleConfig.from_dict(config_data)

    progress = UserProgress(
        total_hours_studied=row["total_hours_studied"] or 0.0,
        last_updated=row["last_updated"] or row["updated_at"],
    )
    for p in progress_rows:
        tp = progress.topics_progress.setdefault(p["topic_id"], TopicProgress(topic_id=p["topic_id"]))
        if p["subtopic_index"] is None:
            tp.completed = bool(p["completed"])
            tp.completed_at = p["completed_at"]
            if tp.completed:
                progress.completed_topics.add(tp.topic_id)
        else:
            tp.subtopics_progress.append(SubtopicProgress(
                subtopic_index=p["subtopic_index"],
                completed=bool(p["completed"]),
                completed_at=p["completed_at"],
            ))

    sessions = [
        StudySession(
            id=s["id"],
            date=s["date"],
            topic_id=s["topic_id"],
            planned_hours=s["planned_hours"] or 0.0,
            subtopic_indices=json.loads(s["subtopic_indices"] or "[]"),
            actual_hours=s["actual_hours"],
            completed=bool(s["completed"]),
            notes=s["notes"] or "",
        )
        for s in session_rows
    ]
    return StudyPlan(
        id=row["id"],
        config=config,
        progress=progress,
        sessions=sessions,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def get_or_create_plan(db_path: str, default_config: ScheduleConfig) -> StudyPlan:
    """Load the current plan, or store a fresh one built from default_config."""
    plan_id = get_setting(db_path, "plan_id")
    if plan_id:
        plan = load_plan(db_path, plan_id)
        if plan is not None:
            return plan
    plan = StudyPlan(id=str(uuid.uuid4()), config=default_config)
    save_plan(db_path, plan)
    set_setting(db_path, "plan_id", plan.id)
    return plan


def upsert_topic_progress(db_path: str, plan_id: str, tp: TopicProgress) -> None:
    """Write the topic row together with all of its subtopic rows."""
    conn = get_connection(db_path)
    _write_topic_row(conn, plan_id, tp)
    for sp in tp.subtopics_progress:
        _write_subtopic_row(conn, plan_id, tp.topic_id, sp)
    conn.commit()
    conn.close()


def upsert_subtopic_progress(db_path: str, plan_id: str, topic_id: str, sp: SubtopicProgress) -> None:
    conn = get_connection(db_path)
    _write_subtopic_row(conn, plan_id, topic_id, sp)
    conn.commit()
    conn.close()


def upsert_constraint(db_path: str, plan_id: str, constraint: DayConstraint) -> None:
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO constraints (study_plan_id, date, type, description) VALUES (?, ?, ?, ?)
        ON CONFLICT(study_plan_id, date) DO UPDATE SET type = excluded.type, description = excluded.description""",
        (plan_id, constraint.date.isoformat(), constraint.type, constraint.description),
    )
    conn.commit()
    conn.close()


def delete_constraint(db_path: str, plan_id: str, day) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "DELETE FROM constraints WHERE study_plan_id = ? AND date = ?",
        (plan_id, day.isoformat()),
    )
    conn.commit()
    conn.close()


def upsert_session(db_path: str, plan_id: str, session: StudySession) -> None:
    conn = get_connection(db_path)
    _write_session(conn, plan_id, session)
    conn.commit()
    conn.close()

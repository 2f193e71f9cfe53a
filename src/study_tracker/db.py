"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".study_tracker" / "tracker.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS subject_groups (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    group_id INTEGER NOT NULL REFERENCES subject_groups(id),
    name TEXT NOT NULL,
    is_active INTEGER DEFAULT 1,
    schedule_type TEXT,
    repeat_days TEXT,
    deadline_date TEXT,
    specific_date TEXT,
    review_enabled INTEGER DEFAULT 1,
    review_count INTEGER,
    last_studied_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS study_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id INTEGER NOT NULL REFERENCES tasks(id),
    started_at TEXT NOT NULL,
    ended_at TEXT,
    work_duration_minutes INTEGER DEFAULT 0,
    planned_duration_minutes INTEGER DEFAULT 25,
    cycles_completed INTEGER DEFAULT 0,
    was_interrupted INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS review_tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    study_session_id INTEGER NOT NULL,
    task_id INTEGER NOT NULL,
    scheduled_date TEXT NOT NULL,
    review_number INTEGER NOT NULL,
    is_completed INTEGER DEFAULT 0,
    completed_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_review_tasks_date ON review_tasks(scheduled_date, is_completed);
CREATE INDEX IF NOT EXISTS idx_review_tasks_session ON review_tasks(study_session_id);
CREATE INDEX IF NOT EXISTS idx_review_tasks_task ON review_tasks(task_id);

CREATE TABLE IF NOT EXISTS daily_stats (
    date TEXT PRIMARY KEY,
    total_study_minutes INTEGER NOT NULL DEFAULT 0,
    session_count INTEGER NOT NULL DEFAULT 0,
    subject_breakdown TEXT NOT NULL DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path, timeout=30)
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


def create_group(db_path: str, name: str) -> int:
    """Insert a subject group and return its id."""
    conn = get_connection(db_path)
    cursor = conn.execute("INSERT INTO subject_groups (name) VALUES (?)", (name,))
    conn.commit()
    group_id = cursor.lastrowid
    conn.close()
    return group_id


def get_groups(db_path: str) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM subject_groups ORDER BY id").fetchall()
    conn.close()
    return [dict(r) for r in rows]

"""Study session (timer run) storage."""
from datetime import date, datetime, timedelta
from typing import Optional

from study_tracker.db import get_connection
from study_tracker.models import StudySession
from study_tracker.review_tasks import delete_tasks_for_session


def _to_session(row) -> StudySession:
    return StudySession(
        id=row["id"],
        task_id=row["task_id"],
        started_at=datetime.fromisoformat(row["started_at"]),
        ended_at=datetime.fromisoformat(row["ended_at"]) if row["ended_at"] else None,
        work_duration_minutes=row["work_duration_minutes"],
        planned_duration_minutes=row["planned_duration_minutes"],
        cycles_completed=row["cycles_completed"],
        was_interrupted=bool(row["was_interrupted"]),
    )


def start_session(db_path: str, task_id: int, planned_minutes: int = 25,
                  started_at: Optional[datetime] = None) -> StudySession:
    started_at = started_at or datetime.now()
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO study_sessions (task_id, started_at, planned_duration_minutes) VALUES (?, ?, ?)",
        (task_id, started_at.isoformat(), planned_minutes),
    )
    conn.commit()
    session_id = cursor.lastrowid
    conn.close()
    return StudySession(id=session_id, task_id=task_id, started_at=started_at,
                        planned_duration_minutes=planned_minutes)


def finish_session(db_path: str, session_id: int, duration_minutes: int, cycles: int,
                   interrupted: bool, ended_at: Optional[datetime] = None) -> StudySession:
    """Record the outcome of a timer run and return the updated session."""
    ended_at = ended_at or datetime.now()
    conn = get_connection(db_path)
    cursor = conn.execute(
        """UPDATE study_sessions SET ended_at = ?, work_duration_minutes = ?, cycles_completed = ?,
        was_interrupted = ? WHERE id = ?""",
        (ended_at.isoformat(), duration_minutes, cycles, int(interrupted), session_id),
    )
    conn.commit()
    conn.close()
    if cursor.rowcount == 0:
        raise LookupError(f"study session {session_id} not found")
    return get_session(db_path, session_id)


def get_session(db_path: str, session_id: int) -> Optional[StudySession]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM study_sessions WHERE id = ?", (session_id,)).fetchone()
    conn.close()
    return _to_session(row) if row else None


def _day_bounds(day: date) -> tuple[str, str]:
    start = datetime.combine(day, datetime.min.time())
    return start.isoformat(), (start + timedelta(days=1)).isoformat()


def get_sessions_for_day(db_path: str, day: date) -> list[StudySession]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM study_sessions WHERE started_at >= ? AND started_at < ? ORDER BY started_at",
        _day_bounds(day),
    ).fetchall()
    conn.close()
    return [_to_session(r) for r in rows]


def get_total_minutes_for_day(db_path: str, day: date) -> int:
    return sum(s.work_duration_minutes for s in get_sessions_for_day(db_path, day))


def get_total_cycles_for_day(db_path: str, day: date) -> int:
    return sum(s.cycles_completed for s in get_sessions_for_day(db_path, day))


def get_session_count(db_path: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM study_sessions").fetchone()[0]
    conn.close()
    return count


def delete_session(db_path: str, session_id: int) -> None:
    delete_tasks_for_session(db_path, session_id)
    conn = get_connection(db_path)
    conn.execute("DELETE FROM study_sessions WHERE id = ?", (session_id,))
    conn.commit()
    conn.close()

"""Review task state transitions and storage."""
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from study_tracker.db import get_connection
from study_tracker.models import ReviewTask

logger = logging.getLogger(__name__)

_SELECT_WITH_DETAILS = """SELECT r.*, t.name AS task_name
    FROM review_tasks r LEFT JOIN tasks t ON r.task_id = t.id"""


# Pure transitions. Pending <-> Completed is reversible; reschedule keeps state.

def complete(review: ReviewTask, now: datetime) -> ReviewTask:
    return replace(review, is_completed=True, completed_at=now)


def reopen(review: ReviewTask) -> ReviewTask:
    return replace(review, is_completed=False, completed_at=None)


def move_to(review: ReviewTask, new_date: date) -> ReviewTask:
    return replace(review, scheduled_date=new_date)


def is_overdue(review: ReviewTask, today: date) -> bool:
    return not review.is_completed and review.scheduled_date < today


def _to_review(row) -> ReviewTask:
    keys = row.keys()
    return ReviewTask(
        id=row["id"],
        study_session_id=row["study_session_id"],
        task_id=row["task_id"],
        scheduled_date=date.fromisoformat(row["scheduled_date"]),
        review_number=row["review_number"],
        is_completed=bool(row["is_completed"]),
        completed_at=datetime.fromisoformat(row["completed_at"]) if row["completed_at"] else None,
        task_name=row["task_name"] if "task_name" in keys else None,
    )


def insert_review_tasks(db_path: str, reviews: list[ReviewTask]) -> list[ReviewTask]:
    """Persist a batch of reviews in one transaction and return them with ids."""
    if not reviews:
        return []
    conn = get_connection(db_path)
    saved = []
    with conn:
        for r in reviews:
            cursor = conn.execute(
                """INSERT INTO review_tasks
                (study_session_id, task_id, scheduled_date, review_number, is_completed, completed_at)
                VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    r.study_session_id, r.task_id, r.scheduled_date.isoformat(), r.review_number,
                    int(r.is_completed), r.completed_at.isoformat() if r.completed_at else None,
                ),
            )
            saved.append(replace(r, id=cursor.lastrowid))
    conn.close()
    return saved


def get_review_task(db_path: str, review_id: int) -> Optional[ReviewTask]:
    conn = get_connection(db_path)
    row = conn.execute(f"{_SELECT_WITH_DETAILS} WHERE r.id = ?", (review_id,)).fetchone()
    conn.close()
    return _to_review(row) if row else None


def _apply(db_path: str, review_id: int, transition: Callable[[ReviewTask], ReviewTask]) -> Optional[ReviewTask]:
    """Read one review, run ``transition`` on it and write the result back.

    The read and the write share one ``BEGIN IMMEDIATE`` transaction. Returns
    None when no such review exists.
    """
    conn = get_connection(db_path)
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        row = conn.execute(f"{_SELECT_WITH_DETAILS} WHERE r.id = ?", (review_id,)).fetchone()
        if row is None:
            conn.execute("ROLLBACK")
            return None
        review = transition(_to_review(row))
        conn.execute(
            "UPDATE review_tasks SET scheduled_date = ?, is_completed = ?, completed_at = ? WHERE id = ?",
            (
                review.scheduled_date.isoformat(), int(review.is_completed),
                review.completed_at.isoformat() if review.completed_at else None, review_id,
            ),
        )
        conn.execute("COMMIT")
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    finally:
        conn.close()
    return review


def mark_as_completed(db_path: str, review_id: int, now: Optional[datetime] = None) -> bool:
    """Mark a review done. Returns False when no such review exists."""
    now = now or datetime.now()
    if _apply(db_path, review_id, lambda r: complete(r, now)) is None:
        logger.warning("mark_as_completed: review task %s not found", review_id)
        return False
    return True


def mark_as_incomplete(db_path: str, review_id: int) -> bool:
    if _apply(db_path, review_id, reopen) is None:
        logger.warning("mark_as_incomplete: review task %s not found", review_id)
        return False
    return True


def reschedule(db_path: str, review_id: int, new_date: date) -> bool:
    if _apply(db_path, review_id, lambda r: move_to(r, new_date)) is None:
        logger.warning("reschedule: review task %s not found", review_id)
        return False
    return True


def _fetch(db_path: str, where: str, params: tuple, order: str = "r.scheduled_date, r.review_number") -> list[ReviewTask]:
    conn = get_connection(db_path)
    rows = conn.execute(f"{_SELECT_WITH_DETAILS} WHERE {where} ORDER BY {order}", params).fetchall()
    conn.close()
    return [_to_review(r) for r in rows]


def get_overdue_and_today_tasks(db_path: str, today: date) -> list[ReviewTask]:
    """Pending reviews scheduled on or before ``today``, oldest first."""
    return _fetch(db_path, "r.is_completed = 0 AND r.scheduled_date <= ?", (today.isoformat(),))


def get_tasks_for_session(db_path: str, study_session_id: int) -> list[ReviewTask]:
    return _fetch(db_path, "r.study_session_id = ?", (study_session_id,), order="r.review_number")


def get_tasks_for_task(db_path: str, task_id: int) -> list[ReviewTask]:
    return _fetch(db_path, "r.task_id = ?", (task_id,))


def get_pending_tasks_for_date(db_path: str, day: date) -> list[ReviewTask]:
    return _fetch(db_path, "r.is_completed = 0 AND r.scheduled_date = ?", (day.isoformat(),))


def get_all_tasks_for_date(db_path: str, day: date) -> list[ReviewTask]:
    return _fetch(db_path, "r.scheduled_date = ?", (day.isoformat(),))


def get_pending_task_count_for_date(db_path: str, day: date) -> int:
    conn = get_connection(db_path)
    count = conn.execute(
        "SELECT COUNT(*) FROM review_tasks WHERE is_completed = 0 AND scheduled_date = ?",
        (day.isoformat(),),
    ).fetchone()[0]
    conn.close()
    return count


def get_review_count_by_date_range(db_path: str, start: date, end: date) -> dict[date, int]:
    """Count reviews per scheduled day in ``[start, end]`` (sparse)."""
    if start > end:
        return {}
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT scheduled_date, COUNT(*) AS n FROM review_tasks
        WHERE scheduled_date BETWEEN ? AND ?
        GROUP BY scheduled_date""",
        (start.isoformat(), end.isoformat()),
    ).fetchall()
    conn.close()
    return {date.fromisoformat(r["scheduled_date"]): r["n"] for r in rows}


def get_total_count(db_path: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM review_tasks").fetchone()[0]
    conn.close()
    return count


def get_incomplete_count(db_path: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM review_tasks WHERE is_completed = 0").fetchone()[0]
    conn.close()
    return count


def _delete(db_path: str, where: str, params: tuple) -> int:
    conn = get_connection(db_path)
    with conn:
        cursor = conn.execute(f"DELETE FROM review_tasks WHERE {where}", params)
    conn.close()
    return cursor.rowcount


def delete_tasks_for_session(db_path: str, study_session_id: int) -> int:
    """Delete every review produced by a session. Safe to call when none exist."""
    deleted = _delete(db_path, "study_session_id = ?", (study_session_id,))
    logger.debug("Deleted %d review tasks for session %s", deleted, study_session_id)
    return deleted


def delete_tasks_for_task(db_path: str, task_id: int) -> int:
    """Delete every review belonging to a task. Safe to call when none exist."""
    deleted = _delete(db_path, "task_id = ?", (task_id,))
    logger.debug("Deleted %d review tasks for task %s", deleted, task_id)
    return deleted


def delete_all(db_path: str) -> int:
    return _delete(db_path, "1 = 1", ())

"""Settings and the end-of-session workflow."""
import logging
from datetime import date, datetime
from typing import Optional

from study_tracker.db import get_connection
from study_tracker.intervals import intervals_for
from study_tracker.models import ReviewTask, Task
from study_tracker.review_schedule import on_session_completed
from study_tracker.review_tasks import get_overdue_and_today_tasks, insert_review_tasks
from study_tracker.sessions import finish_session, get_session
from study_tracker.stats import update_stats
from study_tracker.tasks import get_group_name, get_task, get_tasks_for_date, update_last_studied_at

logger = logging.getLogger(__name__)


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
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


def _get_flag(db_path: str, key: str, default: bool) -> bool:
    return get_setting(db_path, key, "1" if default else "0") == "1"


def is_premium(db_path: str) -> bool:
    return _get_flag(db_path, "is_premium", False)


def set_premium(db_path: str, premium: bool) -> None:
    set_setting(db_path, "is_premium", "1" if premium else "0")


def is_review_enabled(db_path: str) -> bool:
    """Global switch for review generation, on by default."""
    return _get_flag(db_path, "review_enabled", True)


def set_review_enabled(db_path: str, enabled: bool) -> None:
    set_setting(db_path, "review_enabled", "1" if enabled else "0")


def subject_for(db_path: str, task: Task) -> str:
    """Subject name used for the daily breakdown: the task's group, else the task."""
    return get_group_name(db_path, task.group_id) or task.name


def finish_timer_session(
    db_path: str,
    session_id: int,
    task_id: int,
    total_work_minutes: int,
    cycles_completed: int,
    interrupted: bool,
    subject: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[ReviewTask]:
    """Close a timer run and apply its side effects.

    Reviews are only generated when the global switch is on, the task has
    reviews enabled, the run was not interrupted and the tier yields intervals.

    Returns:
        The review tasks created for this session (possibly empty).
    """
    now = now or datetime.now()
    task = get_task(db_path, task_id)
    if task is None:
        raise LookupError(f"task {task_id} not found")

    current = get_session(db_path, session_id)
    if current is None:
        raise LookupError(f"study session {session_id} not found")
    if current.task_id != task_id:
        raise ValueError(f"study session {session_id} belongs to task {current.task_id}, not {task_id}")
    if current.ended_at is not None:
        raise ValueError(f"study session {session_id} already finished at {current.ended_at.isoformat()}")

    session = finish_session(db_path, session_id, total_work_minutes, cycles_completed, interrupted, ended_at=now)
    update_last_studied_at(db_path, task_id, now)
    if total_work_minutes > 0:
        update_stats(db_path, now.date(), total_work_minutes, subject or subject_for(db_path, task))

    if not is_review_enabled(db_path) or interrupted:
        logger.info("Session %s finished without reviews (interrupted=%s)", session_id, interrupted)
        return []
    intervals = intervals_for(is_premium(db_path), task.review_count)
    if not intervals:
        return []
    reviews = insert_review_tasks(db_path, on_session_completed(session, task, intervals))
    logger.info("Session %s finished; %d review tasks scheduled", session_id, len(reviews))
    return reviews


def get_today_tasks(db_path: str, today: date) -> dict:
    scheduled = get_tasks_for_date(db_path, today)
    reviews = get_overdue_and_today_tasks(db_path, today)
    return {
        "scheduled_tasks": scheduled,
        "review_tasks": reviews,
        "total_count": len(scheduled) + len(reviews),
    }

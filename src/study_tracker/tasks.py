"""Task storage and calendar queries."""
import logging
from datetime import date, datetime
from typing import Optional

from study_tracker.db import get_connection
from study_tracker.models import ScheduleType, Task, format_repeat_days, parse_repeat_days
from study_tracker.review_tasks import delete_tasks_for_task
from study_tracker.schedule import count_by_date_range, get_tasks_for_date as _due_on

logger = logging.getLogger(__name__)


def _to_task(row) -> Task:
    kind = ScheduleType.from_string(row["schedule_type"])
    deadline = date.fromisoformat(row["deadline_date"]) if row["deadline_date"] else None
    specific = date.fromisoformat(row["specific_date"]) if row["specific_date"] else None
    days = parse_repeat_days(row["repeat_days"])
    # Payload fields that disagree with the stored type are dropped.
    if kind is ScheduleType.DEADLINE and deadline is None:
        kind = ScheduleType.NONE
    if kind is ScheduleType.SPECIFIC and specific is None:
        kind = ScheduleType.NONE
    return Task(
        id=row["id"],
        group_id=row["group_id"],
        name=row["name"],
        schedule_type=kind,
        repeat_days=days if kind is ScheduleType.REPEAT else frozenset(),
        deadline_date=deadline if kind is ScheduleType.DEADLINE else None,
        specific_date=specific if kind is ScheduleType.SPECIFIC else None,
        review_enabled=bool(row["review_enabled"]),
        review_count=row["review_count"],
        last_studied_at=datetime.fromisoformat(row["last_studied_at"]) if row["last_studied_at"] else None,
        is_active=bool(row["is_active"]),
    )


def _columns(task: Task) -> tuple:
    return (
        task.group_id,
        task.name,
        int(task.is_active),
        task.schedule_type.to_db(),
        format_repeat_days(task.repeat_days),
        task.deadline_date.isoformat() if task.deadline_date else None,
        task.specific_date.isoformat() if task.specific_date else None,
        int(task.review_enabled),
        task.review_count,
        task.last_studied_at.isoformat() if task.last_studied_at else None,
        datetime.now().isoformat(),
    )


def insert_task(db_path: str, task: Task) -> int:
    """Insert a task (its ``id`` is ignored) and return the new id."""
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO tasks (group_id, name, is_active, schedule_type, repeat_days, deadline_date,
        specific_date, review_enabled, review_count, last_studied_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        _columns(task),
    )
    conn.commit()
    task_id = cursor.lastrowid
    conn.close()
    return task_id


def update_task(db_path: str, task: Task) -> None:
    conn = get_connection(db_path)
    conn.execute(
        """UPDATE tasks SET group_id=?, name=?, is_active=?, schedule_type=?, repeat_days=?,
        deadline_date=?, specific_date=?, review_enabled=?, review_count=?, last_studied_at=?,
        updated_at=? WHERE id=?""",
        _columns(task) + (task.id,),
    )
    conn.commit()
    conn.close()


def get_task(db_path: str, task_id: int) -> Optional[Task]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
    conn.close()
    return _to_task(row) if row else None


def get_tasks_by_group(db_path: str, group_id: int) -> list[Task]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM tasks WHERE group_id = ? AND is_active = 1 ORDER BY id", (group_id,)
    ).fetchall()
    conn.close()
    return [_to_task(r) for r in rows]


def get_all_active_tasks(db_path: str) -> list[Task]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM tasks WHERE is_active = 1 ORDER BY id").fetchall()
    conn.close()
    return [_to_task(r) for r in rows]


def get_group_name(db_path: str, group_id: int) -> Optional[str]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT name FROM subject_groups WHERE id = ?", (group_id,)).fetchone()
    conn.close()
    return row["name"] if row else None


def deactivate_task(db_path: str, task_id: int) -> None:
    conn = get_connection(db_path)
    conn.execute("UPDATE tasks SET is_active = 0 WHERE id = ?", (task_id,))
    conn.commit()
    conn.close()


def delete_task(db_path: str, task_id: int) -> None:
    """Delete a task together with its review tasks and sessions."""
    delete_tasks_for_task(db_path, task_id)
    conn = get_connection(db_path)
    with conn:
        conn.execute("DELETE FROM study_sessions WHERE task_id = ?", (task_id,))
        conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
    conn.close()
    logger.info("Deleted task %s", task_id)


def update_last_studied_at(db_path: str, task_id: int, studied_at: datetime) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE tasks SET last_studied_at = ?, updated_at = ? WHERE id = ?",
        (studied_at.isoformat(), studied_at.isoformat(), task_id),
    )
    conn.commit()
    conn.close()


def get_tasks_for_date(db_path: str, day: date) -> list[Task]:
    return _due_on(get_all_active_tasks(db_path), day)


def get_task_count_by_date_range(db_path: str, start: date, end: date) -> dict[date, int]:
    return count_by_date_range(get_all_active_tasks(db_path), start, end)

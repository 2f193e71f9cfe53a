# tests/test_sessions.py
from datetime import date, datetime

import pytest

from study_tracker.models import ReviewTask, Task
from study_tracker.review_tasks import get_total_count, insert_review_tasks
from study_tracker.sessions import (
    delete_session, finish_session, get_session, get_session_count, get_sessions_for_day,
    get_total_cycles_for_day, get_total_minutes_for_day, start_session,
)
from study_tracker.tasks import insert_task

DAY = date(2024, 1, 10)


@pytest.fixture
def task_id(ready_db):
    return insert_task(ready_db, Task.unscheduled(0, 1, "Reading"))


def test_start_session_is_running(ready_db, task_id):
    session = start_session(ready_db, task_id, planned_minutes=50, started_at=datetime(2024, 1, 10, 9, 0))
    stored = get_session(ready_db, session.id)
    assert stored.ended_at is None
    assert stored.planned_duration_minutes == 50
    assert stored.started_at == datetime(2024, 1, 10, 9, 0)


def test_finish_session(ready_db, task_id):
    session = start_session(ready_db, task_id, started_at=datetime(2024, 1, 10, 9, 0))
    finished = finish_session(ready_db, session.id, 45, 2, False, ended_at=datetime(2024, 1, 10, 9, 50))
    assert finished.ended_at == datetime(2024, 1, 10, 9, 50)
    assert finished.work_duration_minutes == 45
    assert finished.cycles_completed == 2
    assert finished.was_interrupted is False


def test_finish_unknown_session_raises(ready_db):
    with pytest.raises(LookupError):
        finish_session(ready_db, 999, 10, 1, False)


def test_day_totals(ready_db, task_id):
    a = start_session(ready_db, task_id, started_at=datetime(2024, 1, 10, 9, 0))
    b = start_session(ready_db, task_id, started_at=datetime(2024, 1, 10, 23, 30))
    c = start_session(ready_db, task_id, started_at=datetime(2024, 1, 11, 0, 10))
    finish_session(ready_db, a.id, 25, 1, False)
    finish_session(ready_db, b.id, 20, 1, True)
    finish_session(ready_db, c.id, 60, 2, False)
    assert [s.id for s in get_sessions_for_day(ready_db, DAY)] == [a.id, b.id]
    assert get_total_minutes_for_day(ready_db, DAY) == 45
    assert get_total_cycles_for_day(ready_db, DAY) == 2
    assert get_session_count(ready_db) == 3


def test_delete_session_cascades_reviews(ready_db, task_id):
    session = start_session(ready_db, task_id)
    insert_review_tasks(ready_db, [
        ReviewTask(id=None, study_session_id=session.id, task_id=task_id, scheduled_date=DAY, review_number=1),
    ])
    delete_session(ready_db, session.id)
    assert get_session(ready_db, session.id) is None
    assert get_total_count(ready_db) == 0

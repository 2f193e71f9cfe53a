# tests/test_review_schedule.py
from datetime import date, datetime

import pytest

from study_tracker.models import StudySession, Task
from study_tracker.review_schedule import on_session_completed


def _finished_session(ended_at=datetime(2024, 1, 10, 21, 30)):
    return StudySession(id=7, task_id=3, started_at=datetime(2024, 1, 10, 21, 0), ended_at=ended_at)


def test_generates_one_review_per_interval():
    task = Task.unscheduled(3, 1, "Kanji")
    reviews = on_session_completed(_finished_session(), task, [1, 3, 7])
    assert [r.scheduled_date for r in reviews] == [date(2024, 1, 11), date(2024, 1, 13), date(2024, 1, 17)]
    assert [r.review_number for r in reviews] == [1, 2, 3]
    assert all(r.study_session_id == 7 and r.task_id == 3 for r in reviews)
    assert all(not r.is_completed and r.completed_at is None for r in reviews)
    assert all(r.id is None for r in reviews)


def test_review_disabled_task_produces_nothing():
    task = Task.unscheduled(3, 1, "Kanji", review_enabled=False)
    assert on_session_completed(_finished_session(), task, [1, 3, 7]) == []


def test_empty_interval_list_produces_nothing():
    task = Task.unscheduled(3, 1, "Kanji")
    assert on_session_completed(_finished_session(), task, []) == []


def test_scheduled_dates_are_non_decreasing():
    task = Task.unscheduled(3, 1, "Kanji")
    reviews = on_session_completed(_finished_session(), task, [1, 3, 7, 14, 30, 60])
    dates = [r.scheduled_date for r in reviews]
    assert dates == sorted(dates)


def test_running_session_is_rejected():
    task = Task.unscheduled(3, 1, "Kanji")
    with pytest.raises(ValueError):
        on_session_completed(_finished_session(ended_at=None), task, [1])

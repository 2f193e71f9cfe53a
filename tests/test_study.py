# tests/test_study.py
from datetime import date, datetime, timedelta

import pytest

from study_tracker.models import StudySession, Task
from study_tracker.review_tasks import get_tasks_for_session, insert_review_tasks, mark_as_completed
from study_tracker.review_schedule import on_session_completed
from study_tracker.sessions import get_session, start_session
from study_tracker.stats import get_by_date
from study_tracker.study import (
    finish_timer_session, get_setting, get_today_tasks, is_premium, is_review_enabled,
    set_premium, set_review_enabled, set_setting, subject_for,
)
from study_tracker.tasks import get_task, insert_task

NOW = datetime(2024, 1, 10, 20, 0)
TODAY = NOW.date()


def test_settings_round_trip(ready_db):
    assert get_setting(ready_db, "missing") is None
    assert get_setting(ready_db, "missing", "x") == "x"
    set_setting(ready_db, "k", "v1")
    set_setting(ready_db, "k", "v2")
    assert get_setting(ready_db, "k") == "v2"


def test_tier_and_review_flags(ready_db):
    assert is_premium(ready_db) is False
    assert is_review_enabled(ready_db) is True
    set_premium(ready_db, True)
    set_review_enabled(ready_db, False)
    assert is_premium(ready_db) is True
    assert is_review_enabled(ready_db) is False


def test_subject_for_uses_group_name(ready_db):
    task_id = insert_task(ready_db, Task.unscheduled(0, 1, "Algebra"))
    assert subject_for(ready_db, get_task(ready_db, task_id)) == "Math"
    assert subject_for(ready_db, Task.unscheduled(0, 999, "Orphan")) == "Orphan"


def _start(db_path, **task_kwargs):
    task_id = insert_task(db_path, Task.unscheduled(0, 1, "Algebra", **task_kwargs))
    session = start_session(db_path, task_id, started_at=NOW - timedelta(minutes=30))
    return task_id, session.id


def test_finish_free_tier_creates_two_reviews(ready_db):
    task_id, session_id = _start(ready_db)
    reviews = finish_timer_session(ready_db, session_id, task_id, 25, 1, False, now=NOW)
    assert [r.scheduled_date for r in reviews] == [TODAY + timedelta(days=1), TODAY + timedelta(days=3)]
    assert [r.review_number for r in get_tasks_for_session(ready_db, session_id)] == [1, 2]
    assert get_session(ready_db, session_id).ended_at == NOW
    assert get_task(ready_db, task_id).last_studied_at == NOW
    stats = get_by_date(ready_db, TODAY)
    assert stats.total_study_minutes == 25
    assert stats.subject_breakdown == {"Math": 25}


def test_finish_premium_uses_task_review_count(ready_db):
    set_premium(ready_db, True)
    task_id, session_id = _start(ready_db, review_count=4)
    reviews = finish_timer_session(ready_db, session_id, task_id, 25, 1, False, now=NOW)
    assert [(r.scheduled_date - TODAY).days for r in reviews] == [1, 3, 7, 14]


def test_finish_interrupted_records_stats_but_no_reviews(ready_db):
    task_id, session_id = _start(ready_db)
    assert finish_timer_session(ready_db, session_id, task_id, 10, 0, True, now=NOW) == []
    assert get_tasks_for_session(ready_db, session_id) == []
    assert get_by_date(ready_db, TODAY).total_study_minutes == 10


def test_finish_with_global_switch_off(ready_db):
    set_review_enabled(ready_db, False)
    task_id, session_id = _start(ready_db)
    assert finish_timer_session(ready_db, session_id, task_id, 25, 1, False, now=NOW) == []


def test_finish_with_task_reviews_disabled(ready_db):
    task_id, session_id = _start(ready_db, review_enabled=False)
    assert finish_timer_session(ready_db, session_id, task_id, 25, 1, False, now=NOW) == []


def test_finish_zero_minutes_skips_stats(ready_db):
    task_id, session_id = _start(ready_db)
    finish_timer_session(ready_db, session_id, task_id, 0, 0, False, now=NOW)
    assert get_by_date(ready_db, TODAY) is None


def test_finish_explicit_subject(ready_db):
    task_id, session_id = _start(ready_db)
    finish_timer_session(ready_db, session_id, task_id, 25, 1, False, subject="Geometry", now=NOW)
    assert get_by_date(ready_db, TODAY).subject_breakdown == {"Geometry": 25}


def test_finish_unknown_task_raises(ready_db):
    with pytest.raises(LookupError):
        finish_timer_session(ready_db, 1, 999, 25, 1, False, now=NOW)


def test_downgrade_does_not_trim_existing_reviews(ready_db):
    set_premium(ready_db, True)
    task_id, first = _start(ready_db)
    finish_timer_session(ready_db, first, task_id, 25, 1, False, now=NOW)
    assert len(get_tasks_for_session(ready_db, first)) == 6

    set_premium(ready_db, False)
    second = start_session(ready_db, task_id, started_at=NOW).id
    finish_timer_session(ready_db, second, task_id, 25, 1, False, now=NOW + timedelta(hours=1))
    assert len(get_tasks_for_session(ready_db, first)) == 6
    assert len(get_tasks_for_session(ready_db, second)) == 2


def test_get_today_tasks(ready_db):
    insert_task(ready_db, Task.on_date(0, 1, "Exam", TODAY))
    insert_task(ready_db, Task.on_date(0, 1, "Later", TODAY + timedelta(days=1)))
    task_id, session_id = _start(ready_db)
    three_days_ago = StudySession(id=session_id, task_id=task_id, started_at=NOW - timedelta(days=3),
                                  ended_at=NOW - timedelta(days=3))
    reviews = insert_review_tasks(
        ready_db, on_session_completed(three_days_ago, get_task(ready_db, task_id), [1, 3, 7]),
    )
    mark_as_completed(ready_db, reviews[0].id)
    result = get_today_tasks(ready_db, TODAY)
    assert [t.name for t in result["scheduled_tasks"]] == ["Exam"]
    assert [r.review_number for r in result["review_tasks"]] == [2]
    assert result["total_count"] == 2


def test_finish_twice_is_rejected_and_leaves_reviews_intact(ready_db):
    task_id, session_id = _start(ready_db)
    finish_timer_session(ready_db, session_id, task_id, 25, 1, False, now=NOW)
    with pytest.raises(ValueError):
        finish_timer_session(ready_db, session_id, task_id, 25, 1, False, now=NOW + timedelta(minutes=5))
    assert [r.review_number for r in get_tasks_for_session(ready_db, session_id)] == [1, 2]
    stats = get_by_date(ready_db, TODAY)
    assert stats.total_study_minutes == 25
    assert stats.session_count == 1


def test_finish_with_another_tasks_session_is_rejected(ready_db):
    task_id, session_id = _start(ready_db)
    other_id = insert_task(ready_db, Task.unscheduled(0, 1, "Geometry"))
    with pytest.raises(ValueError):
        finish_timer_session(ready_db, session_id, other_id, 25, 1, False, now=NOW)
    assert get_session(ready_db, session_id).ended_at is None
    assert get_tasks_for_session(ready_db, session_id) == []
    assert get_by_date(ready_db, TODAY) is None


def test_finish_unknown_session_raises(ready_db):
    task_id, _ = _start(ready_db)
    with pytest.raises(LookupError):
        finish_timer_session(ready_db, 999, task_id, 25, 1, False, now=NOW)

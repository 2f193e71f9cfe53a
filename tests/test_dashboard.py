# tests/test_dashboard.py
from datetime import date, datetime, timedelta

from study_tracker.dashboard import (
    get_streak_color, get_streak_label, get_study_stats, week_start_for,
)
from study_tracker.models import Task
from study_tracker.sessions import start_session
from study_tracker.stats import update_stats
from study_tracker.study import finish_timer_session
from study_tracker.tasks import insert_task

TODAY = date(2024, 3, 20)  # Wednesday


def test_week_start_for():
    assert week_start_for(TODAY) == date(2024, 3, 18)
    assert week_start_for(date(2024, 3, 18)) == date(2024, 3, 18)
    assert week_start_for(date(2024, 3, 24)) == date(2024, 3, 18)


def test_streak_label():
    assert get_streak_label(30) == "ON FIRE"
    assert get_streak_label(7) == "STRONG"
    assert get_streak_label(1) == "BUILDING"
    assert get_streak_label(0) == "START TODAY"
    assert get_streak_color(0) == "red"


def test_study_stats_empty(ready_db):
    stats = get_study_stats(ready_db, TODAY)
    assert stats["current_streak"] == 0
    assert stats["max_streak"] == 0
    assert stats["today_minutes"] == 0
    assert len(stats["weekly_data"]) == 7


def test_study_stats_with_data(ready_db):
    task_id = insert_task(ready_db, Task.unscheduled(0, 1, "Algebra"))
    now = datetime.combine(TODAY, datetime.min.time()) + timedelta(hours=19)
    session = start_session(ready_db, task_id, started_at=now - timedelta(minutes=30))
    finish_timer_session(ready_db, session.id, task_id, 30, 1, False, now=now)
    update_stats(ready_db, TODAY - timedelta(days=1), 60, "Math")
    update_stats(ready_db, date(2024, 3, 1), 15, "Math")

    stats = get_study_stats(ready_db, TODAY)
    assert stats["today_minutes"] == 30
    assert stats["today_sessions"] == 1
    assert stats["total_sessions"] == 1
    assert stats["current_streak"] == 2
    assert stats["max_streak"] == 2
    assert stats["this_week_minutes"] == 90
    assert stats["this_month_minutes"] == 105
    assert stats["average_daily_minutes"] == 105 // 30
    assert [d.minutes for d in stats["weekly_data"]] == [0, 60, 30, 0, 0, 0, 0]

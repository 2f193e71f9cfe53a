"""Study statistics summary for the dashboard view."""
from datetime import date, timedelta

from study_tracker.sessions import get_session_count, get_total_cycles_for_day, get_total_minutes_for_day
from study_tracker.stats import (
    get_current_streak, get_max_streak, get_total_minutes_between_dates, get_weekly_data,
)


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def get_study_stats(db_path: str, today: date) -> dict:
    week_start = week_start_for(today)
    month_start = today.replace(day=1)
    last_30_days = get_total_minutes_between_dates(db_path, today - timedelta(days=30), today)
    return {
        "today_minutes": get_total_minutes_for_day(db_path, today),
        "today_sessions": get_total_cycles_for_day(db_path, today),
        "total_sessions": get_session_count(db_path),
        "current_streak": get_current_streak(db_path, today),
        "max_streak": get_max_streak(db_path),
        "this_week_minutes": get_total_minutes_between_dates(db_path, week_start, today),
        "this_month_minutes": get_total_minutes_between_dates(db_path, month_start, today),
        "average_daily_minutes": last_30_days // 30,
        "weekly_data": get_weekly_data(db_path, week_start),
    }


def get_streak_label(streak: int) -> str:
    if streak >= 30:
        return "ON FIRE"
    elif streak >= 7:
        return "STRONG"
    elif streak >= 1:
        return "BUILDING"
    return "START TODAY"


def get_streak_color(streak: int) -> str:
    if streak >= 30:
        return "green"
    elif streak >= 7:
        return "yellow"
    elif streak >= 1:
        return "dark_orange"
    return "red"

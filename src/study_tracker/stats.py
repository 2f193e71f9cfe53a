"""Daily study statistics, streaks and weekly summaries."""
import json
import logging
from datetime import date, timedelta
from typing import Iterable, Optional

from study_tracker.db import get_connection
from study_tracker.models import DailyStats, DayStats

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ["月", "火", "水", "木", "金", "土", "日"]


def _whole_minutes(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_breakdown(raw: Optional[str]) -> dict[str, int]:
    """Decode a persisted subject breakdown. Bad data yields an empty dict.

    Minutes must be whole numbers; a fractional, boolean or string value makes
    the whole breakdown unreadable rather than being truncated.
    """
    if not raw or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning("Invalid subject breakdown JSON %r: %s", raw, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Subject breakdown is not an object: %r", raw)
        return {}
    breakdown = {}
    for subject, value in data.items():
        minutes = _whole_minutes(value)
        if minutes is None:
            logger.warning("Subject breakdown has non-integer minutes for %r: %r", subject, raw)
            return {}
        breakdown[str(subject)] = minutes
    return breakdown


def _to_stats(row) -> DailyStats:
    return DailyStats(
        date=date.fromisoformat(row["date"]),
        total_study_minutes=row["total_study_minutes"],
        session_count=row["session_count"],
        subject_breakdown=parse_breakdown(row["subject_breakdown"]),
    )


def update_stats(db_path: str, day: date, minutes: int, subject: str) -> DailyStats:
    """Fold one finished session into the row for ``day``.

    The read and the write run inside one ``BEGIN IMMEDIATE`` transaction, which
    takes the database write lock up front, so two updates to the same day
    cannot interleave and lose minutes.
    """
    conn = get_connection(db_path)
    conn.isolation_level = None
    try:
        conn.execute("BEGIN IMMEDIATE")
        row = conn.execute("SELECT * FROM daily_stats WHERE date = ?", (day.isoformat(),)).fetchone()
        if row is None:
            stats = DailyStats(
                date=day, total_study_minutes=minutes, session_count=1,
                subject_breakdown={subject: minutes},
            )
            conn.execute(
                """INSERT INTO daily_stats (date, total_study_minutes, session_count, subject_breakdown)
                VALUES (?, ?, ?, ?)""",
                (day.isoformat(), stats.total_study_minutes, stats.session_count,
                 json.dumps(stats.subject_breakdown, ensure_ascii=False)),
            )
        else:
            stats = _to_stats(row)
            stats.subject_breakdown[subject] = stats.subject_breakdown.get(subject, 0) + minutes
            stats.total_study_minutes += minutes
            stats.session_count += 1
            conn.execute(
                """UPDATE daily_stats SET total_study_minutes = ?, session_count = ?, subject_breakdown = ?
                WHERE date = ?""",
                (stats.total_study_minutes, stats.session_count,
                 json.dumps(stats.subject_breakdown, ensure_ascii=False), day.isoformat()),
            )
        conn.execute("COMMIT")
    except Exception:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    finally:
        conn.close()
    logger.debug("Stats for %s: %d min over %d sessions", day, stats.total_study_minutes, stats.session_count)
    return stats


def get_by_date(db_path: str, day: date) -> Optional[DailyStats]:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM daily_stats WHERE date = ?", (day.isoformat(),)).fetchone()
    conn.close()
    return _to_stats(row) if row else None


def get_stats_between_dates(db_path: str, start: date, end: date) -> list[DailyStats]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM daily_stats WHERE date BETWEEN ? AND ? ORDER BY date",
        (start.isoformat(), end.isoformat()),
    ).fetchall()
    conn.close()
    return [_to_stats(r) for r in rows]


def get_total_minutes_between_dates(db_path: str, start: date, end: date) -> int:
    conn = get_connection(db_path)
    total = conn.execute(
        "SELECT SUM(total_study_minutes) FROM daily_stats WHERE date BETWEEN ? AND ?",
        (start.isoformat(), end.isoformat()),
    ).fetchone()[0]
    conn.close()
    return total or 0


def _studied_dates(db_path: str) -> list[date]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT date FROM daily_stats ORDER BY date").fetchall()
    conn.close()
    return [date.fromisoformat(r["date"]) for r in rows]


def current_streak(dates: Iterable[date], today: date) -> int:
    """Count consecutive studied days ending today, or yesterday if today is empty."""
    studied = set(dates)
    if today in studied:
        day = today
    elif today - timedelta(days=1) in studied:
        day = today - timedelta(days=1)
    else:
        return 0
    streak = 0
    while day in studied:
        streak += 1
        day -= timedelta(days=1)
    return streak


def max_streak(dates: Iterable[date]) -> int:
    ordered = sorted(set(dates))
    if not ordered:
        return 0
    best = run = 1
    for prev, cur in zip(ordered, ordered[1:]):
        if cur == prev + timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
    return best


def get_current_streak(db_path: str, today: date) -> int:
    return current_streak(_studied_dates(db_path), today)


def get_max_streak(db_path: str) -> int:
    return max_streak(_studied_dates(db_path))


def get_weekly_data(db_path: str, week_start: date) -> list[DayStats]:
    """Seven entries from ``week_start``, labelled Monday-first."""
    week_end = week_start + timedelta(days=6)
    by_date = {s.date: s for s in get_stats_between_dates(db_path, week_start, week_end)}
    week = []
    for offset in range(7):
        day = week_start + timedelta(days=offset)
        stats = by_date.get(day)
        week.append(DayStats(
            day_of_week=WEEKDAY_LABELS[offset],
            date=day,
            minutes=stats.total_study_minutes if stats else 0,
        ))
    return week

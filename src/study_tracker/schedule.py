"""Decide which tasks occur on a calendar date."""
from collections import defaultdict
from datetime import date, timedelta

from study_tracker.models import ScheduleType, Task

SCHEDULED_TYPES = (ScheduleType.REPEAT, ScheduleType.DEADLINE, ScheduleType.SPECIFIC)


def _schedule_type(task: Task) -> ScheduleType:
    value = task.schedule_type
    if isinstance(value, ScheduleType):
        return value
    return ScheduleType.from_string(value if isinstance(value, str) else None)


def is_due_on(task: Task, day: date) -> bool:
    """Return True when the task has an occurrence on ``day``.

    Repeat days use ISO numbering (1=Monday .. 7=Sunday). Anything that is not
    a recognised schedule type is never due.
    """
    kind = _schedule_type(task)
    if kind is ScheduleType.REPEAT:
        return day.isoweekday() in task.repeat_days
    if kind is ScheduleType.DEADLINE:
        return task.deadline_date == day
    if kind is ScheduleType.SPECIFIC:
        return task.specific_date == day
    return False


def get_tasks_for_date(tasks: list[Task], day: date) -> list[Task]:
    return [t for t in tasks if is_due_on(t, day)]


def count_by_date_range(tasks: list[Task], start: date, end: date) -> dict[date, int]:
    """Count due tasks per day in ``[start, end]``; days with no tasks are omitted."""
    if start > end:
        return {}

    repeat_by_weekday = defaultdict(int)
    counts = defaultdict(int)
    for task in tasks:
        kind = _schedule_type(task)
        if kind is ScheduleType.REPEAT:
            for weekday in task.repeat_days:
                repeat_by_weekday[weekday] += 1
        elif kind is ScheduleType.DEADLINE:
            if task.deadline_date is not None and start <= task.deadline_date <= end:
                counts[task.deadline_date] += 1
        elif kind is ScheduleType.SPECIFIC:
            if task.specific_date is not None and start <= task.specific_date <= end:
                counts[task.specific_date] += 1

    if repeat_by_weekday:
        day = start
        while day <= end:
            n = repeat_by_weekday.get(day.isoweekday(), 0)
            if n:
                counts[day] += n
            day += timedelta(days=1)

    return dict(counts)


def get_upcoming_deadline_tasks(tasks: list[Task], today: date, days: int = 7) -> list[Task]:
    """Deadline tasks due after today and within ``days`` days, soonest first."""
    horizon = today + timedelta(days=days)
    upcoming = [
        t for t in tasks
        if _schedule_type(t) is ScheduleType.DEADLINE
        and t.deadline_date is not None
        and today < t.deadline_date <= horizon
    ]
    return sorted(upcoming, key=lambda t: t.deadline_date)

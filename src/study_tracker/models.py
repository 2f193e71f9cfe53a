"""Data classes for the study tracker domain model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional


class ScheduleType(Enum):
    NONE = "none"
    REPEAT = "repeat"
    DEADLINE = "deadline"
    SPECIFIC = "specific"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "ScheduleType":
        """Map a persisted schedule string to a member. Unknown values become NONE."""
        if not value:
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NONE

    def to_db(self) -> Optional[str]:
        return None if self is ScheduleType.NONE else self.value


def parse_repeat_days(raw: Optional[str]) -> frozenset[int]:
    """Parse "1,3,5" into {1, 3, 5}. Blank or out-of-range entries are skipped."""
    if not raw:
        return frozenset()
    days = set()
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit() and 1 <= int(part) <= 7:
            days.add(int(part))
    return frozenset(days)


def format_repeat_days(days) -> Optional[str]:
    if not days:
        return None
    return ",".join(str(d) for d in sorted(days))


@dataclass(frozen=True)
class Task:
    id: int
    group_id: int
    name: str
    schedule_type: ScheduleType = ScheduleType.NONE
    repeat_days: frozenset[int] = frozenset()
    deadline_date: Optional[date] = None
    specific_date: Optional[date] = None
    review_enabled: bool = True
    review_count: Optional[int] = None
    last_studied_at: Optional[datetime] = None
    is_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, "repeat_days", frozenset(self.repeat_days))
        if any(d < 1 or d > 7 for d in self.repeat_days):
            raise ValueError(f"repeat_days must be within 1..7, got {sorted(self.repeat_days)}")
        if self.repeat_days and self.schedule_type is not ScheduleType.REPEAT:
            raise ValueError("repeat_days are only valid for REPEAT tasks")
        if (self.deadline_date is not None) != (self.schedule_type is ScheduleType.DEADLINE):
            raise ValueError("deadline_date must be set exactly when schedule_type is DEADLINE")
        if (self.specific_date is not None) != (self.schedule_type is ScheduleType.SPECIFIC):
            raise ValueError("specific_date must be set exactly when schedule_type is SPECIFIC")

    @classmethod
    def unscheduled(cls, id: int, group_id: int, name: str, **kwargs) -> "Task":
        return cls(id=id, group_id=group_id, name=name, schedule_type=ScheduleType.NONE, **kwargs)

    @classmethod
    def repeating(cls, id: int, group_id: int, name: str, days, **kwargs) -> "Task":
        return cls(id=id, group_id=group_id, name=name, schedule_type=ScheduleType.REPEAT,
                   repeat_days=frozenset(days), **kwargs)

    @classmethod
    def with_deadline(cls, id: int, group_id: int, name: str, deadline: date, **kwargs) -> "Task":
        return cls(id=id, group_id=group_id, name=name, schedule_type=ScheduleType.DEADLINE,
                   deadline_date=deadline, **kwargs)

    @classmethod
    def on_date(cls, id: int, group_id: int, name: str, day: date, **kwargs) -> "Task":
        return cls(id=id, group_id=group_id, name=name, schedule_type=ScheduleType.SPECIFIC,
                   specific_date=day, **kwargs)


@dataclass
class StudySession:
    id: int
    task_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    work_duration_minutes: int = 0
    planned_duration_minutes: int = 25
    cycles_completed: int = 0
    was_interrupted: bool = False


@dataclass(frozen=True)
class ReviewTask:
    id: Optional[int]
    study_session_id: int
    task_id: int
    scheduled_date: date
    review_number: int
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    task_name: Optional[str] = None


@dataclass
class DailyStats:
    date: date
    total_study_minutes: int = 0
    session_count: int = 0
    subject_breakdown: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class DayStats:
    day_of_week: str
    date: date
    minutes: int

"""
Data models for the workspace calendar events and tasks.

This module contains the dataclasses used to represent calendar events, tasks,
users and the date key every calendar query is bucketed on.
"""
from __future__ import annotations

import calendar
import re
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
import typing as t


EventType = t.Literal["meeting", "task", "personal", "other"]
Priority = t.Literal["high", "medium", "low"]

EVENT_TYPES: tuple[str, ...] = t.get_args(EventType)
PRIORITIES: tuple[str, ...] = t.get_args(Priority)


@dataclass(frozen=True, order=True)
class DateKey:
    """A plain calendar date (no time zone) used as the bucketing key for events.

    Ordering follows (year, month, day). ``month`` is 1-based.
    """
    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        # Raises ValueError for impossible dates such as 2025-02-30
        date(self.year, self.month, self.day)

    @classmethod
    def parse(cls, value: str) -> DateKey:
        """Parse a ``YYYY-MM-DD`` string."""
        try:
            year, month, day = (int(part) for part in value.strip().split("-"))
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid date key: {value!r} (expected YYYY-MM-DD)")
        return cls(year, month, day)

    @classmethod
    def from_date(cls, value: date) -> DateKey:
        return cls(value.year, value.month, value.day)

    @classmethod
    def coerce(cls, value: t.Union[DateKey, date, str]) -> DateKey:
        """Accept a DateKey, a ``datetime.date`` or a ``YYYY-MM-DD`` string."""
        if isinstance(value, DateKey):
            return value
        if isinstance(value, date):
            return cls.from_date(value)
        return cls.parse(value)

    @classmethod
    def today(cls) -> DateKey:
        return cls.from_date(date.today())

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def weekday_index(self) -> int:
        """Sunday-first weekday index: Sunday = 0 ... Saturday = 6."""
        return (self.to_date().weekday() + 1) % 7

    def add_days(self, days: int) -> DateKey:
        return DateKey.from_date(self.to_date() + timedelta(days=days))

    def add_months(self, months: int) -> DateKey:
        """Shift by whole months, clamping the day to the target month's length."""
        index = self.year * 12 + (self.month - 1) + months
        year, month = divmod(index, 12)
        month += 1
        last_day = calendar.monthrange(year, month)[1]
        return DateKey(year, month, min(self.day, last_day))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


def parse_time(value: str) -> tuple[int, int]:
    """Parse a 24-hour "HH:MM" time into (hours, minutes)."""
    match = re.fullmatch(r"(\d{1,2}):(\d{2})", value) if isinstance(value, str) else None
    if match is None or int(match.group(1)) > 23 or int(match.group(2)) > 59:
        raise ValueError(f"Invalid time: {value!r} (expected HH:MM)")
    return int(match.group(1)), int(match.group(2))


def check_time(value: t.Optional[str]) -> t.Optional[str]:
    """Validate an optional "HH:MM" time, returning it unchanged."""
    if value is not None:
        parse_time(value)
    return value


@dataclass
class CalendarEvent:
    """Represents a calendar event on a single day, optionally with a time range."""
    id: str
    title: str
    date: DateKey
    start_time: t.Optional[str] = None  # "HH:MM" 24h
    end_time: t.Optional[str] = None    # "HH:MM" 24h
    type: EventType = "other"
    description: t.Optional[str] = None
    completed: t.Optional[bool] = None
    priority: t.Optional[Priority] = None

    @property
    def is_timed(self) -> bool:
        return bool(self.start_time and self.end_time)


@dataclass
class Task:
    """Represents a to-do item on the task board."""
    id: str
    text: str
    completed: bool = False
    category: str = "pending"  # "pending", "received", "assigned", ...
    due_date: t.Optional[DateKey] = None
    priority: t.Optional[Priority] = None
    added_to_calendar: t.Optional[bool] = None
    completed_date: t.Optional[DateKey] = None


@dataclass
class User:
    """The logged-in user profile."""
    id: str
    name: str
    email: str
    avatar: t.Optional[str] = None


@dataclass
class TaskStats:
    """Dashboard counters derived from the task collection."""
    active_tasks: int = 0
    completed_today: int = 0
    tasks_assigned: int = 0
    tasks_received: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "activeTasks": self.active_tasks,
            "completedToday": self.completed_today,
            "tasksAssigned": self.tasks_assigned,
            "tasksReceived": self.tasks_received,
        }


@dataclass
class StoreChange:
    """Notification emitted after a store or view mutation."""
    source: str
    action: t.Literal["added", "updated", "deleted", "view"]
    record_id: t.Optional[str] = None
    details: dict[str, t.Any] = field(default_factory=dict)


def event_to_dict(event: CalendarEvent) -> dict[str, t.Any]:
    """Plain-JSON view of an event (date rendered as ``YYYY-MM-DD``)."""
    data = asdict(event)
    data["date"] = str(event.date)
    return data


def task_to_dict(task: Task) -> dict[str, t.Any]:
    data = asdict(task)
    data["due_date"] = str(task.due_date) if task.due_date else None
    data["completed_date"] = str(task.completed_date) if task.completed_date else None
    return data

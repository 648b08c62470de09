"""
Pydantic models for persisted workspace state.

These are the on-disk equivalents of the dataclasses in ``workspace.models``.
Each collection is written as a versioned envelope so stored data can be
migrated forward; a bare JSON array is treated as version 0.
"""
from __future__ import annotations

import typing as t
from pydantic import BaseModel, Field, field_validator

from workspace.models import CalendarEvent, DateKey, Task, User, check_time


SCHEMA_VERSION = 1

EventTypeLiteral = t.Literal["meeting", "task", "personal", "other"]
PriorityLiteral = t.Literal["high", "medium", "low"]


def _check_date(value: t.Optional[str]) -> t.Optional[str]:
    if value in (None, ""):
        return None
    return str(DateKey.parse(value))


class EventRecord(BaseModel):
    """One stored calendar event."""
    id: str
    title: str = ""
    date: str                               # "YYYY-MM-DD"
    start_time: t.Optional[str] = None      # "HH:MM" 24h
    end_time: t.Optional[str] = None        # "HH:MM" 24h
    type: EventTypeLiteral = "other"
    description: t.Optional[str] = None
    completed: t.Optional[bool] = None
    priority: t.Optional[PriorityLiteral] = None

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return str(DateKey.parse(value))

    @field_validator("start_time", "end_time")
    @classmethod
    def check_times(cls, value: t.Optional[str]) -> t.Optional[str]:
        return check_time(value)

    @classmethod
    def from_event(cls, event: CalendarEvent) -> EventRecord:
        return cls(
            id=event.id,
            title=event.title,
            date=str(event.date),
            start_time=event.start_time,
            end_time=event.end_time,
            type=event.type,
            description=event.description,
            completed=event.completed,
            priority=event.priority,
        )

    def to_event(self) -> CalendarEvent:
        return CalendarEvent(
            id=self.id,
            title=self.title,
            date=DateKey.parse(self.date),
            start_time=self.start_time,
            end_time=self.end_time,
            type=self.type,
            description=self.description,
            completed=self.completed,
            priority=self.priority,
        )


class TaskRecord(BaseModel):
    """One stored task."""
    id: str
    text: str = ""
    completed: bool = False
    category: str = "pending"
    due_date: t.Optional[str] = None
    priority: t.Optional[PriorityLiteral] = None
    added_to_calendar: t.Optional[bool] = None
    completed_date: t.Optional[str] = None

    @field_validator("due_date", "completed_date")
    @classmethod
    def check_dates(cls, value: t.Optional[str]) -> t.Optional[str]:
        return _check_date(value)

    @classmethod
    def from_task(cls, task: Task) -> TaskRecord:
        return cls(
            id=task.id,
            text=task.text,
            completed=task.completed,
            category=task.category,
            due_date=str(task.due_date) if task.due_date else None,
            priority=task.priority,
            added_to_calendar=task.added_to_calendar,
            completed_date=str(task.completed_date) if task.completed_date else None,
        )

    def to_task(self) -> Task:
        return Task(
            id=self.id,
            text=self.text,
            completed=self.completed,
            category=self.category,
            due_date=DateKey.parse(self.due_date) if self.due_date else None,
            priority=self.priority,
            added_to_calendar=self.added_to_calendar,
            completed_date=DateKey.parse(self.completed_date) if self.completed_date else None,
        )


class UserRecord(BaseModel):
    """The stored profile of the logged-in user."""
    id: str
    name: str
    email: str
    avatar: t.Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> UserRecord:
        return cls(id=user.id, name=user.name, email=user.email, avatar=user.avatar)

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, email=self.email, avatar=self.avatar)


class AccountRecord(UserRecord):
    """A registered account, including its password hash."""
    password_salt: str
    password_hash: str


class EventCollection(BaseModel):
    """Versioned envelope for the ``integral_events`` entry."""
    version: int = SCHEMA_VERSION
    items: list[EventRecord] = Field(default_factory=list)


class TaskCollection(BaseModel):
    """Versioned envelope for the ``integral_tasks`` entry."""
    version: int = SCHEMA_VERSION
    items: list[TaskRecord] = Field(default_factory=list)


class AccountCollection(BaseModel):
    """Versioned envelope for the ``integral_users`` entry."""
    version: int = SCHEMA_VERSION
    items: list[AccountRecord] = Field(default_factory=list)


def migrate_collection(data: t.Any) -> dict[str, t.Any]:
    """Bring raw decoded JSON up to the current envelope shape.

    Version 0 is a bare list of records. Raises ValueError for anything that
    is neither a list nor an envelope at a known version.
    """
    if isinstance(data, list):
        return {"version": SCHEMA_VERSION, "items": data}
    if isinstance(data, dict):
        version = data.get("version")
        if version == SCHEMA_VERSION:
            return data
        raise ValueError(f"Unsupported schema version: {version!r}")
    raise ValueError(f"Unexpected stored data of type {type(data).__name__}")

# -*- coding: utf-8 -*-
"""Event and task stores.

Each store exclusively owns its collection, mirrors it to local storage after
every mutation and notifies subscribers of the change. Callers receive copies
of the stored records and go through the store operations to change them.
"""
from __future__ import annotations

import abc
import dataclasses
import logging
import uuid
from datetime import date
import typing as t

from pydantic import ValidationError

from workspace.models import CalendarEvent, DateKey, StoreChange, Task, TaskStats
from workspace.records import (
    EventCollection,
    EventRecord,
    TaskCollection,
    TaskRecord,
    migrate_collection,
)
from workspace.storage import EVENTS_KEY, TASKS_KEY, Storage, read_json, write_json

logger = logging.getLogger(__name__)

Listener = t.Callable[[StoreChange], None]
DateLike = t.Union[DateKey, date, str]


class Observable:
    """Minimal publish/subscribe hub for change notifications."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> t.Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: StoreChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception(f"Change listener failed for {change.source}:{change.action}")


class _PersistentCollection(Observable, abc.ABC):
    """Shared load/persist logic for the record stores."""

    storage_key: str = ""
    source: str = ""

    def __init__(self, storage: Storage) -> None:
        super().__init__()
        self.storage = storage
        self.in_memory_only = False

    def _load(self, seed: t.Callable[[], list[t.Any]]) -> list[t.Any]:
        try:
            data = read_json(self.storage, self.storage_key)
        except ValueError as e:
            logger.warning(f"Failed to parse stored {self.storage_key}, using seed data: {e}")
            return seed()

        if data is None:
            logger.debug(f"No stored {self.storage_key}, using seed data")
            return seed()

        try:
            return self._decode(migrate_collection(data))
        except (ValidationError, ValueError) as e:
            logger.warning(f"Stored {self.storage_key} is corrupt, using seed data: {e}")
            return seed()

    @abc.abstractmethod
    def _decode(self, data: dict[str, t.Any]) -> list[t.Any]:
        """Build the collection from a migrated envelope."""

    @abc.abstractmethod
    def _encode(self) -> dict[str, t.Any]:
        """Serialize the collection as an envelope."""

    def _persist(self) -> None:
        if self.in_memory_only:
            return
        try:
            write_json(self.storage, self.storage_key, self._encode())
        except OSError as e:
            logger.error(
                f"Could not write {self.storage_key}, continuing in memory only: {e}"
            )
            self.in_memory_only = True

    def flush(self) -> None:
        """Write the full collection to storage."""
        self._persist()


def _new_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def _check_record(convert: t.Callable[[t.Any], t.Any], value: t.Any, kind: str) -> None:
    """Check a record against the stored schema before it joins a collection."""
    try:
        convert(value)
    except ValidationError as e:
        problems = "; ".join(
            f"{error['loc'][0]}: {error['msg']}" if error["loc"] else error["msg"]
            for error in e.errors()
        )
        raise ValueError(f"Invalid {kind}: {problems}") from e


def default_events() -> list[CalendarEvent]:
    """Seed events shown on first launch."""
    return [
        CalendarEvent(
            id="event1",
            title="Team Meeting",
            date=DateKey(2025, 3, 15),
            start_time="10:00",
            end_time="11:00",
            type="meeting",
            description="Weekly team sync",
        ),
        CalendarEvent(
            id="event2",
            title="Client Call",
            date=DateKey(2025, 3, 18),
            start_time="14:00",
            end_time="15:00",
            type="meeting",
            description="Discuss project requirements",
        ),
        CalendarEvent(
            id="event3",
            title="Prepare Presentation",
            date=DateKey(2025, 3, 20),
            start_time="09:00",
            end_time="12:00",
            type="task",
            completed=False,
            priority="high",
            description="Prepare slides for client meeting",
        ),
    ]


def default_tasks(today: DateKey) -> list[Task]:
    """Seed tasks shown on first launch; two of them were completed ``today``."""
    return [
        Task("task1", "Prepare for client meeting", False, "pending",
             DateKey(2025, 3, 15), "high", True),
        Task("task2", "Send meeting agenda to team", True, "pending",
             DateKey(2025, 3, 10), "medium", True, today),
        Task("task3", "Review marketing materials from Sarah", False, "received",
             DateKey(2025, 3, 18), "medium", True),
        Task("task4", "David - Financial report analysis", False, "assigned",
             DateKey(2025, 3, 25), "high", True),
        Task("task5", "Update project timeline", True, "pending",
             DateKey(2025, 3, 12), "medium", None, today),
        Task("task6", "Review quarterly goals", True, "pending",
             DateKey(2025, 3, 5), "low", None, DateKey(2025, 3, 5)),
        Task("task7", "Prepare sales presentation", False, "pending",
             DateKey(2025, 3, 20), "high"),
        Task("task8", "Team performance reviews", False, "assigned",
             DateKey(2025, 3, 28), "medium"),
        Task("task9", "Client feedback implementation", False, "received",
             DateKey(2025, 3, 22), "high"),
        Task("task10", "Update website content", False, "received",
             DateKey(2025, 3, 17), "medium"),
    ]


_EVENT_FIELDS = {f.name for f in dataclasses.fields(CalendarEvent)} - {"id"}
_TASK_FIELDS = {f.name for f in dataclasses.fields(Task)} - {"id"}


def _check_fields(fields: dict[str, t.Any], allowed: set[str], kind: str) -> dict[str, t.Any]:
    fields = {k: v for k, v in fields.items() if k != "id"}
    unknown = sorted(set(fields) - allowed)
    if unknown:
        raise ValueError(f"Unknown {kind} field(s): {', '.join(unknown)}")
    return fields


class EventStore(_PersistentCollection):
    """The single source of truth for calendar events."""

    storage_key = EVENTS_KEY
    source = "events"

    def __init__(
        self,
        storage: Storage,
        seed: t.Optional[t.Callable[[], list[CalendarEvent]]] = None,
    ) -> None:
        super().__init__(storage)
        self._events: list[CalendarEvent] = self._load(seed or default_events)

    def _decode(self, data: dict[str, t.Any]) -> list[CalendarEvent]:
        collection = EventCollection.model_validate(data)
        return [record.to_event() for record in collection.items]

    def _encode(self) -> dict[str, t.Any]:
        return EventCollection(
            items=[EventRecord.from_event(event) for event in self._events]
        ).model_dump()

    @property
    def events(self) -> list[CalendarEvent]:
        """All events in insertion order."""
        return [dataclasses.replace(event) for event in self._events]

    def __len__(self) -> int:
        return len(self._events)

    def add_event(
        self,
        title: str,
        date: DateLike,
        *,
        start_time: t.Optional[str] = None,
        end_time: t.Optional[str] = None,
        type: str = "other",
        description: t.Optional[str] = None,
        completed: t.Optional[bool] = None,
        priority: t.Optional[str] = None,
    ) -> CalendarEvent:
        """Adds an event to the calendar.

        :param title: Title of the event. Blank titles are accepted here.
        :param date: Day of the event (DateKey, date or "YYYY-MM-DD").
        :param start_time: Optional start time, "HH:MM" 24h.
        :param end_time: Optional end time, "HH:MM" 24h.
        :param type: One of meeting, task, personal, other.
        :return: The created CalendarEvent with a fresh id.
        :raises ValueError: For an unknown type or priority or a malformed time;
            the collection is left untouched.
        """
        event = CalendarEvent(
            id=_new_id("event"),
            title=title,
            date=DateKey.coerce(date),
            start_time=start_time,
            end_time=end_time,
            type=type,
            description=description,
            completed=completed,
            priority=priority,
        )
        _check_record(EventRecord.from_event, event, "event")
        self._events.append(event)
        self._persist()
        logger.debug(f"Added event {event.id} on {event.date}")
        self._notify(StoreChange(self.source, "added", event.id))
        return dataclasses.replace(event)

    def update_event(self, event_id: str, **fields: t.Any) -> t.Optional[CalendarEvent]:
        """Merge ``fields`` into the matching event.

        Returns the updated event, or None when no event has ``event_id``.
        """
        fields = _check_fields(fields, _EVENT_FIELDS, "event")
        if "date" in fields:
            fields["date"] = DateKey.coerce(fields["date"])

        for index, event in enumerate(self._events):
            if event.id == event_id:
                updated = dataclasses.replace(event, **fields)
                _check_record(EventRecord.from_event, updated, "event")
                self._events[index] = updated
                self._persist()
                self._notify(StoreChange(self.source, "updated", event_id))
                return dataclasses.replace(updated)

        logger.debug(f"update_event: no event with id {event_id}")
        return None

    def delete_event(self, event_id: str) -> bool:
        """Remove the event with ``event_id``; deleting an unknown id is a no-op."""
        remaining = [event for event in self._events if event.id != event_id]
        if len(remaining) == len(self._events):
            return False
        self._events = remaining
        self._persist()
        self._notify(StoreChange(self.source, "deleted", event_id))
        return True

    def get_event(self, event_id: str) -> t.Optional[CalendarEvent]:
        for event in self._events:
            if event.id == event_id:
                return dataclasses.replace(event)
        return None

    def get_events_for_date(self, day: DateLike) -> list[CalendarEvent]:
        """All events on ``day``, in insertion order."""
        key = DateKey.coerce(day)
        return [dataclasses.replace(event) for event in self._events if event.date == key]

    def get_events_for_day(self, day: int, month: int, year: int) -> list[CalendarEvent]:
        """All events on the given day. ``month`` is 0-indexed (January = 0)."""
        return self.get_events_for_date(DateKey(year, month + 1, day))

    def get_events_in_range(self, start: DateLike, end: DateLike) -> list[CalendarEvent]:
        """Events with ``start <= date <= end``, in insertion order."""
        first, last = DateKey.coerce(start), DateKey.coerce(end)
        return [
            dataclasses.replace(event)
            for event in self._events
            if first <= event.date <= last
        ]


class TaskStore(_PersistentCollection):
    """The single source of truth for task board items."""

    storage_key = TASKS_KEY
    source = "tasks"

    def __init__(
        self,
        storage: Storage,
        seed: t.Optional[t.Callable[[], list[Task]]] = None,
        clock: t.Callable[[], date] = date.today,
    ) -> None:
        super().__init__(storage)
        self._clock = clock
        self._tasks: list[Task] = self._load(seed or (lambda: default_tasks(self.today())))

    def today(self) -> DateKey:
        return DateKey.from_date(self._clock())

    def _decode(self, data: dict[str, t.Any]) -> list[Task]:
        collection = TaskCollection.model_validate(data)
        return [record.to_task() for record in collection.items]

    def _encode(self) -> dict[str, t.Any]:
        return TaskCollection(
            items=[TaskRecord.from_task(task) for task in self._tasks]
        ).model_dump()

    @property
    def tasks(self) -> list[Task]:
        """All tasks, newest first."""
        return [dataclasses.replace(task) for task in self._tasks]

    def __len__(self) -> int:
        return len(self._tasks)

    def add_task(
        self,
        text: str,
        *,
        category: str = "pending",
        due_date: t.Optional[DateLike] = None,
        priority: t.Optional[str] = None,
        added_to_calendar: bool = False,
        completed: bool = False,
    ) -> Task:
        """Adds a task at the top of the board."""
        task = Task(
            id=_new_id("task"),
            text=text,
            completed=completed,
            category=category,
            due_date=DateKey.coerce(due_date) if due_date else None,
            priority=priority,
            added_to_calendar=added_to_calendar,
            completed_date=self.today() if completed else None,
        )
        _check_record(TaskRecord.from_task, task, "task")
        self._tasks.insert(0, task)
        self._persist()
        self._notify(StoreChange(self.source, "added", task.id))
        return dataclasses.replace(task)

    def update_task(self, task_id: str, **fields: t.Any) -> t.Optional[Task]:
        """Merge ``fields`` into the matching task.

        When ``completed`` flips the completion date is set to today or
        cleared, unless ``completed_date`` is supplied explicitly.
        """
        fields = _check_fields(fields, _TASK_FIELDS, "task")
        for name in ("due_date", "completed_date"):
            if fields.get(name):
                fields[name] = DateKey.coerce(fields[name])

        for index, task in enumerate(self._tasks):
            if task.id != task_id:
                continue
            if "completed" in fields and "completed_date" not in fields:
                if fields["completed"] and not task.completed:
                    fields["completed_date"] = self.today()
                elif not fields["completed"] and task.completed:
                    fields["completed_date"] = None
            updated = dataclasses.replace(task, **fields)
            _check_record(TaskRecord.from_task, updated, "task")
            self._tasks[index] = updated
            self._persist()
            self._notify(StoreChange(self.source, "updated", task_id))
            return dataclasses.replace(updated)

        logger.debug(f"update_task: no task with id {task_id}")
        return None

    def toggle_task_completion(self, task_id: str) -> t.Optional[Task]:
        task = self.get_task(task_id)
        if task is None:
            return None
        return self.update_task(task_id, completed=not task.completed)

    def delete_task(self, task_id: str) -> bool:
        remaining = [task for task in self._tasks if task.id != task_id]
        if len(remaining) == len(self._tasks):
            return False
        self._tasks = remaining
        self._persist()
        self._notify(StoreChange(self.source, "deleted", task_id))
        return True

    def get_task(self, task_id: str) -> t.Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return dataclasses.replace(task)
        return None

    def tasks_by_category(self) -> dict[str, list[Task]]:
        grouped: dict[str, list[Task]] = {}
        for task in self._tasks:
            grouped.setdefault(task.category, []).append(dataclasses.replace(task))
        return grouped

    def get_task_stats(self) -> TaskStats:
        """Dashboard counters; "today" is re-read from the clock on every call."""
        today = self.today()
        return TaskStats(
            active_tasks=sum(1 for task in self._tasks if not task.completed),
            completed_today=sum(
                1 for task in self._tasks
                if task.completed and task.completed_date == today
            ),
            tasks_assigned=sum(1 for task in self._tasks if task.category == "assigned"),
            tasks_received=sum(1 for task in self._tasks if task.category == "received"),
        )


TASK_FILTERS = ("all", "completed", "pending", "high", "medium", "low")


def filter_tasks(tasks: t.Iterable[Task], status: str = "all") -> list[Task]:
    """Filter tasks by completion status or by priority, as the task board does."""
    if status == "completed":
        return [task for task in tasks if task.completed]
    if status == "pending":
        return [task for task in tasks if not task.completed]
    if status in ("high", "medium", "low"):
        return [task for task in tasks if task.priority == status]
    if status != "all":
        raise ValueError(f"Unknown task filter: {status!r}")
    return list(tasks)


def mirror_task_to_calendar(
    tasks: TaskStore,
    events: EventStore,
    task_id: str,
) -> t.Optional[CalendarEvent]:
    """Copy a task with a due date onto the calendar as a ``task`` event.

    The copy is one-way: the task is flagged ``added_to_calendar`` but no link
    to the created event is kept. Returns None for unknown tasks and tasks
    without a due date.
    """
    task = tasks.get_task(task_id)
    if task is None or task.due_date is None:
        return None

    event = events.add_event(
        task.text,
        task.due_date,
        type="task",
        completed=task.completed,
        priority=task.priority,
    )
    tasks.update_task(task_id, added_to_calendar=True)
    return event

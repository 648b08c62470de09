"""Application state: the stores and services of one workspace session.

``AppState`` is created at start-up and handed to whatever needs it (the CLI,
the tool server, tests); ``open_workspace`` wraps its lifetime and flushes the
stores to storage on shutdown.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
import logging
from pathlib import Path
import typing as t

from auth_service.service import AuthService
from calendar_view.controller import CalendarController
from workspace.store import EventStore, TaskStore
from workspace.storage import LocalStorage, Storage

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    storage: Storage
    events: EventStore
    tasks: TaskStore
    auth: AuthService
    calendar: CalendarController

    @classmethod
    def create(
        cls,
        storage: Storage,
        clock: t.Callable[[], datetime] = datetime.now,
    ) -> AppState:
        """Load every store from ``storage`` and wire the calendar controller."""
        events = EventStore(storage)
        tasks = TaskStore(storage, clock=lambda: clock().date())
        return cls(
            storage=storage,
            events=events,
            tasks=tasks,
            auth=AuthService(storage),
            calendar=CalendarController(events, clock=clock),
        )

    def flush(self) -> None:
        """Write both collections to storage."""
        self.events.flush()
        self.tasks.flush()


@contextmanager
def open_workspace(
    data_dir: t.Union[str, Path, None] = None,
    storage: t.Optional[Storage] = None,
) -> t.Iterator[AppState]:
    """Initialize workspace state on entry and flush it on exit."""
    state = AppState.create(storage or LocalStorage(data_dir))
    logger.debug("Workspace opened")
    try:
        yield state
    finally:
        state.flush()
        logger.debug("Workspace flushed")

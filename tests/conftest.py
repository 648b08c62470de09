"""Shared fixtures for workspace tests."""
from datetime import date, datetime

import pytest

from workspace.app import AppState
from workspace.store import EventStore, TaskStore
from workspace.storage import MemoryStorage


FIXED_NOW = datetime(2025, 3, 15, 9, 30)


class MutableClock:
    """A clock whose current time tests can move."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def today(self) -> date:
        return self.now.date()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def event_store(storage: MemoryStorage) -> EventStore:
    """An event store that starts empty."""
    return EventStore(storage, seed=list)


@pytest.fixture
def task_store(storage: MemoryStorage, clock: MutableClock) -> TaskStore:
    """A task store that starts empty, with "today" = 2025-03-15."""
    return TaskStore(storage, seed=list, clock=clock.today)


@pytest.fixture
def app_state(storage: MemoryStorage, clock: MutableClock) -> AppState:
    return AppState.create(storage, clock=clock)

"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, datetime

import pytest

from src.domain.task import Area, Priority, Task
from src.services.task_store import TaskStore
from tests.unit.mocks import FakeClock, InMemoryTaskBackend, RecordingNotifier


OWNER_ID = "owner-1"

# Reference time for deterministic tests: Tuesday 10 March 2026, noon UTC
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def backend():
    """Provides a fresh InMemoryTaskBackend for each test."""
    return InMemoryTaskBackend()


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def store(backend, clock):
    """A started TaskStore mirroring the in-memory backend."""
    task_store = TaskStore(backend=backend, owner_id=OWNER_ID, clock=clock)
    await task_store.start()
    yield task_store
    task_store.stop()


@pytest.fixture
def make_task():
    """Factory for Task models with sensible defaults.

    Usage:
        task = make_task("t1", area=Area.WORK, priority=Priority.HIGH, deadline="2026-03-12")
    """

    def _make(task_id: str, **overrides) -> Task:
        data = {
            "id": task_id,
            "title": f"Task {task_id}",
            "description": "",
            "area": Area.HOME,
            "priority": Priority.MEDIUM,
            "deadline": "2026-03-20",
            "completed": False,
            "created_at": NOW,
            "completed_at": None,
            "owner_id": OWNER_ID,
        }
        data.update(overrides)
        return Task.model_validate(data)

    return _make


@pytest.fixture
def seed_task(backend):
    """Insert a record into the backend with defaults; returns its ID."""

    def _seed(**overrides) -> str:
        data = {
            "title": "Seeded task",
            "description": "",
            "area": "Home",
            "priority": "medium",
            "deadline": "2026-03-20",
            "completed": False,
            "created_at": NOW.isoformat(),
            "completed_at": None,
        }
        data.update(overrides)
        return backend.seed(OWNER_ID, **data)

    return _seed

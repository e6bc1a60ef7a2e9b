"""Pytest fixtures for questdo tests."""

from datetime import datetime, timedelta

import pytest

from questdo.backends.memory import MemoryBackend
from questdo.core import TaskService
from questdo.ledger import ProgressionLedger
from questdo.state import StatusState, TaskCollection

START = datetime(2024, 3, 4, 9, 0, 0)


class FakeClock:
    """Controllable clock for completion-time rules."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear module-level caches before each test."""
    from questdo.config import clear_config_cache

    clear_config_cache()

    yield

    clear_config_cache()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def service(backend: MemoryBackend, clock: FakeClock) -> TaskService:
    return TaskService(TaskCollection(), ProgressionLedger(StatusState()), backend, clock)

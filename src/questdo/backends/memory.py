"""In-memory backend."""

from __future__ import annotations

from questdo.backends.base import LoadedState
from questdo.models import PlayerStatus, Task


class MemoryBackend:
    """Keeps the last saved state in memory - for tests and throwaway sessions."""

    def __init__(self, tasks: list[Task] | None = None, status: PlayerStatus | None = None):
        self._tasks = list(tasks or [])
        self._status = status
        self.save_count = 0

    def load(self) -> LoadedState:
        return LoadedState(tasks=list(self._tasks), status=self._status)

    def save(self, tasks: list[Task], status: PlayerStatus) -> None:
        self._tasks = list(tasks)
        self._status = status
        self.save_count += 1

"""In-memory state containers.

The task service and the ledger each receive one of these by reference.
Callers own them; nothing in questdo keeps a module-level copy.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from questdo.models import PlayerStatus, Task


class TaskCollection:
    """Ordered task records, most recent first."""

    def __init__(self, tasks: Iterable[Task] = ()):
        self._order: list[str] = []
        self._items: dict[str, Task] = {}
        for task in tasks:
            self._order.append(task.id)
            self._items[task.id] = task

    def __iter__(self) -> Iterator[Task]:
        return (self._items[id] for id in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, id: object) -> bool:
        return id in self._items

    def get(self, id: str) -> Task | None:
        return self._items.get(id)

    def insert_head(self, task: Task) -> None:
        if task.id in self._items:
            raise ValueError(f"Duplicate task id: {task.id}")
        self._order.insert(0, task.id)
        self._items[task.id] = task

    def replace(self, task: Task) -> None:
        if task.id not in self._items:
            raise KeyError(task.id)
        self._items[task.id] = task

    def remove(self, id: str) -> Task:
        task = self._items.pop(id)
        self._order.remove(id)
        return task

    def snapshot(self) -> list[Task]:
        return list(self)


class StatusState:
    """Holder for the single PlayerStatus record."""

    def __init__(self, status: PlayerStatus | None = None):
        self.current = status or PlayerStatus()

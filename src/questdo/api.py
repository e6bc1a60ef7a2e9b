"""Public Python API for questdo programmatic access.

Usage:
    from questdo.api import Quest

    q = Quest.open()
    task = q.add("Write report", size="large", priority=3, tags=["learning"])
    q.add_subtask(task.id, "Outline")
    q.status()
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from questdo.config import Config
from questdo.core import TaskService
from questdo.models import Kind, Priority, Size, TaskFilter
from questdo.rewards import PenaltyReason

if TYPE_CHECKING:
    from questdo.models import CompletionReport, PlayerStatus, ProjectProgress, Task

_UNSET = object()


def _to_enum(enum_cls, value, label: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value.lower() if isinstance(value, str) else value)
    except ValueError:
        valid = ", ".join(str(e.value) for e in enum_cls)
        raise ValueError(f"Invalid {label}: {value!r}. Valid: {valid}")


def _to_size(value: str | Size) -> Size:
    return _to_enum(Size, value, "size")


def _to_kind(value: str | Kind | None) -> Kind | None:
    return _to_enum(Kind, value, "kind")


def _to_priority(value: int | str | Priority | None) -> Priority | None:
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if isinstance(value, str):
        try:
            return Priority[value.upper()]
        except KeyError:
            raise ValueError(f"Invalid priority: {value!r}. Valid: 1-3, low, medium, high")
    return _to_enum(Priority, value, "priority")


def _to_filter(value: str | TaskFilter) -> TaskFilter:
    return _to_enum(TaskFilter, value, "filter")


def _to_due(value: str | date | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


class Quest:
    """Public API for questdo programmatic access."""

    def __init__(self, service: TaskService) -> None:
        self._svc = service

    @classmethod
    def open(cls, path: str | Path | None = None, backend: str | None = None) -> Quest:
        """Open stored state from the config dir, or from an explicit directory."""
        config = Config.load()
        storage_path = Path(path) if path is not None else None
        return cls(TaskService.from_config(config, storage_path=storage_path, backend=backend))

    @property
    def service(self) -> TaskService:
        return self._svc

    def add(
        self,
        title: str,
        *,
        size: str | Size = "medium",
        kind: str | Kind | None = None,
        priority: int | str | None = None,
        detail: str = "",
        due: str | date | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        """Create a task."""
        return self._svc.create(
            title,
            size=_to_size(size),
            kind=_to_kind(kind),
            priority=_to_priority(priority),
            detail=detail,
            due_date=_to_due(due),
            tags=tags,
        )

    def add_subtask(
        self,
        parent_id: str,
        title: str,
        *,
        size: str | Size = "small",
        priority: int | str | None = None,
        detail: str = "",
        due: str | date | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        return self._svc.add_subtask(
            parent_id,
            title,
            size=_to_size(size),
            priority=_to_priority(priority),
            detail=detail,
            due_date=_to_due(due),
            tags=tags,
        )

    def list(self, filter: str | TaskFilter = "all") -> list[Task]:
        """List top-level tasks for a view (all, active, completed, projects)."""
        return self._svc.list(_to_filter(filter))

    def get(self, id: str) -> Task | None:
        return self._svc.get(id)

    def children(self, id: str) -> list[Task]:
        return self._svc.children_of(id)

    def update(
        self,
        id: str,
        *,
        title: object = _UNSET,
        detail: object = _UNSET,
        size: object = _UNSET,
        priority: object = _UNSET,
        due: object = _UNSET,
        tags: object = _UNSET,
    ) -> Task:
        """Update a task. Only provided fields are changed.

        Pass None to clear due date or tags. Omit to leave unchanged.
        """
        changes: dict = {}
        if title is not _UNSET:
            changes["title"] = title
        if detail is not _UNSET:
            changes["detail"] = detail
        if size is not _UNSET:
            changes["size"] = _to_size(size)
        if priority is not _UNSET:
            changes["priority"] = _to_priority(priority)
        if due is not _UNSET:
            changes["due_date"] = _to_due(due)
        if tags is not _UNSET:
            changes["tags"] = tags
        if not changes:
            raise ValueError("No fields to update")
        return self._svc.update(id, **changes)

    def complete(self, id: str) -> CompletionReport:
        return self._svc.complete(id)

    def reopen(self, id: str) -> Task:
        return self._svc.reopen(id)

    def toggle(self, id: str) -> Task:
        return self._svc.toggle_completion(id)

    def promote(self, id: str) -> Task:
        return self._svc.promote_to_project(id)

    def demote(self, id: str) -> Task:
        return self._svc.demote_to_task(id)

    def delete(self, id: str) -> Task:
        return self._svc.delete(id)

    def progress(self, id: str) -> ProjectProgress:
        return self._svc.progress(id)

    def status(self) -> PlayerStatus:
        return self._svc.status

    def reset(self) -> PlayerStatus:
        return self._svc.reset_status()

    def focus(self, completed: bool = True) -> PlayerStatus:
        """Record a finished (or abandoned) focus session."""
        return self._svc.record_focus_session(completed)

    def penalize(self, id: str, reason: str = "overdue") -> tuple[int, int]:
        return self._svc.penalize(id, _to_enum(PenaltyReason, reason, "reason"))

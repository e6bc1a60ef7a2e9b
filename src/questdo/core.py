"""Core task service - hierarchy rules and reward orchestration."""

from __future__ import annotations

import importlib
import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from questdo import rewards
from questdo.errors import (
    NotFound,
    PersistenceError,
    PreconditionFailed,
    ResourceExhausted,
    ValidationFailed,
)
from questdo.ledger import ProgressionLedger
from questdo.models import (
    CompletionReport,
    Kind,
    PlayerStatus,
    Priority,
    ProjectProgress,
    Size,
    Task,
    TaskFilter,
)
from questdo.state import StatusState, TaskCollection

if TYPE_CHECKING:
    from questdo.backends.base import StateBackend
    from questdo.config import Config

logger = logging.getLogger("questdo.core")

# Maps backend name -> "module.path:ClassName", imported on first use
_backend_registry: dict[str, type | str] = {
    "sqlite": "questdo.backends.sqlite:SqliteBackend",
    "json": "questdo.backends.jsonfile:JsonBackend",
    "memory": "questdo.backends.memory:MemoryBackend",
}

PROJECT_INT_EXP = 30
PROJECT_SPEED_EXP = 40
LEARNING_INT_EXP = 15
FAST_SPEED_EXP = 20
DECOMPOSITION_INT_EXP = 25

_UPDATABLE_FIELDS = frozenset({"title", "detail", "size", "priority", "due_date", "tags"})


def _resolve_backend_class(backend_ref: str | type) -> type:
    """Resolve backend reference to actual class (lazy import)."""
    if isinstance(backend_ref, type):
        return backend_ref
    module_path, class_name = backend_ref.rsplit(":", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def create_backend(
    config: Config,
    storage_path: Path | None = None,
    name: str | None = None,
) -> StateBackend:
    """Instantiate the configured backend."""
    from questdo.storage import get_storage_path

    backend_name = name or config.default_backend
    if backend_name not in _backend_registry:
        raise ValueError(f"Unknown backend: {backend_name}")
    backend_cls = _resolve_backend_class(_backend_registry[backend_name])
    if backend_name == "memory":
        return backend_cls()
    return backend_cls(get_storage_path(config, backend_name, storage_path))


def _new_id() -> str:
    return uuid.uuid4().hex[:8]


def _clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationFailed("Title is required")
    return title.strip()


def _clean_size(size: Any) -> Size:
    try:
        return size if isinstance(size, Size) else Size(size)
    except ValueError:
        raise ValidationFailed(f"Invalid size: {size!r}")


def _clean_priority(priority: Any) -> Priority | None:
    if priority is None:
        return None
    try:
        return Priority(int(priority))
    except (TypeError, ValueError):
        raise ValidationFailed(f"Priority must be 1-3, got {priority!r}")


def _clean_tags(tags: Iterable[str] | None) -> tuple[str, ...]:
    if not tags:
        return ()
    if isinstance(tags, str):
        raise ValidationFailed("Tags must be a collection of strings")
    cleaned: list[str] = []
    for tag in tags:
        tag = tag.strip() if isinstance(tag, str) else ""
        if not tag:
            raise ValidationFailed("Tags must be non-empty strings")
        if tag not in cleaned:
            cleaned.append(tag)
    return tuple(cleaned)


def _clean_due_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise ValidationFailed(f"Invalid due date: {value!r}")


class TaskService:
    """Owns the task collection and drives the progression ledger.

    The only writer of task state and the only caller of ledger mutators.
    Every mutation either completes fully or raises before changing anything,
    then the whole state is handed to the backend.
    """

    def __init__(
        self,
        tasks: TaskCollection,
        ledger: ProgressionLedger,
        backend: StateBackend | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._tasks = tasks
        self._ledger = ledger
        self._backend = backend
        self._clock = clock or datetime.now

    @classmethod
    def from_config(
        cls,
        config: Config,
        storage_path: Path | None = None,
        backend: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> TaskService:
        """Create backend from config, load stored state and wire everything up.

        Raises PersistenceError if stored state cannot be read.
        """
        state_backend = create_backend(config, storage_path, backend)
        loaded = state_backend.load()
        logger.debug("Loaded %d tasks from %s", len(loaded.tasks), type(state_backend).__name__)
        return cls(
            TaskCollection(loaded.tasks),
            ProgressionLedger(StatusState(loaded.status)),
            state_backend,
            clock,
        )

    @property
    def status(self) -> PlayerStatus:
        return self._ledger.status

    @property
    def ledger(self) -> ProgressionLedger:
        return self._ledger

    @property
    def backend_name(self) -> str:
        return type(self._backend).__name__ if self._backend else "none"

    @property
    def storage_path(self) -> str:
        path = getattr(self._backend, "storage_path", None)
        return str(path) if path is not None else "N/A"

    # Queries

    def get(self, id: str) -> Task | None:
        return self._tasks.get(id)

    def all(self) -> list[Task]:
        return self._tasks.snapshot()

    def list(self, filter: TaskFilter = TaskFilter.ALL) -> list[Task]:
        """Top-level tasks for a view; subtasks are shown under their project."""
        items = [t for t in self._tasks if t.parent_id is None]
        if filter == TaskFilter.ACTIVE:
            return [t for t in items if not t.completed]
        if filter == TaskFilter.COMPLETED:
            return [t for t in items if t.completed]
        if filter == TaskFilter.PROJECTS:
            return [t for t in items if t.kind == Kind.PROJECT]
        return items

    def by_kind(self, kind: Kind) -> list[Task]:
        return [t for t in self._tasks if t.kind == kind]

    def active(self) -> list[Task]:
        return [t for t in self._tasks if not t.completed]

    def completed(self) -> list[Task]:
        return [t for t in self._tasks if t.completed]

    def children_of(self, id: str) -> list[Task]:
        """Subtasks in creation order."""
        project = self._require(id)
        return [self._tasks.get(cid) for cid in project.child_ids if cid in self._tasks]

    def progress(self, id: str) -> ProjectProgress:
        project = self._require(id)
        children = self.children_of(id)
        done = [c for c in children if c.completed]
        total_reward = sum(c.staked_points for c in children)

        if project.completed:
            eligible, days_left = rewards.within_expected_duration(project), 0
        else:
            eligible, days_left = rewards.speed_bonus_window(project, self._clock())

        return ProjectProgress(
            completed_children=len(done),
            total_children=len(children),
            completed_reward=sum(c.staked_points for c in done),
            total_reward=total_reward,
            completion_bonus=rewards.project_completion_bonus(total_reward),
            speed_bonus_eligible=eligible,
            speed_bonus_days_left=days_left,
            speed_bonus=rewards.speed_bonus_share(total_reward) if eligible else 0,
        )

    # Task lifecycle

    def create(
        self,
        title: str,
        *,
        size: Size | str = Size.MEDIUM,
        kind: Kind | None = None,
        priority: Priority | int | None = None,
        detail: str = "",
        due_date: date | None = None,
        tags: Iterable[str] | None = None,
    ) -> Task:
        """Create a task at the head of the list."""
        title = _clean_title(title)
        size = _clean_size(size)
        priority = _clean_priority(priority)
        tags = _clean_tags(tags)
        due_date = _clean_due_date(due_date)
        if kind == Kind.SUBTASK:
            raise ValidationFailed("Subtasks are created with add_subtask")
        self._check_hp()

        if kind is None:
            kind = Kind.PROJECT if size == Size.LARGE else Kind.TASK

        task = self._with_points(
            Task(
                id=_new_id(),
                title=title,
                detail=detail or "",
                kind=kind,
                size=size,
                created_at=self._clock(),
                due_date=due_date,
                priority=priority,
                tags=tags,
            )
        )
        self._tasks.insert_head(task)
        logger.info("Created %s %s (%d pts)", task.kind.value, task.id, task.staked_points)
        self._persist()
        return task

    def update(self, id: str, **changes: Any) -> Task:
        """Merge field changes and recompute staked points."""
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationFailed(
                f"Cannot update field(s): {', '.join(sorted(unknown))}",
                details={"fields": sorted(unknown)},
            )
        task = self._require(id)

        cleaned: dict[str, Any] = {}
        if "title" in changes:
            cleaned["title"] = _clean_title(changes["title"])
        if "detail" in changes:
            cleaned["detail"] = changes["detail"] or ""
        if "size" in changes:
            cleaned["size"] = _clean_size(changes["size"])
        if "priority" in changes:
            cleaned["priority"] = _clean_priority(changes["priority"])
        if "due_date" in changes:
            cleaned["due_date"] = _clean_due_date(changes["due_date"])
        if "tags" in changes:
            cleaned["tags"] = _clean_tags(changes["tags"])

        updated = replace(task, **cleaned)
        if (
            cleaned.get("size") == Size.LARGE
            and updated.kind == Kind.TASK
            and not updated.child_ids
        ):
            updated = replace(updated, kind=Kind.PROJECT)
            logger.info("Task %s promoted to project (size large)", id)

        updated = self._store(updated)
        self._persist()
        return updated

    def delete(self, id: str) -> Task:
        """Remove a task. Children of a project become independent tasks."""
        task = self._require(id)
        self._sever_children(task)
        self._detach_from_parent(task)
        self._tasks.remove(id)
        logger.info("Deleted %s %s", task.kind.value, id)
        self._persist()
        return task

    def toggle_completion(self, id: str) -> Task:
        task = self._require(id)
        if task.completed:
            return self.reopen(id)
        return self.complete(id).task

    def complete(self, id: str) -> CompletionReport:
        """Complete a task and credit its rewards to the ledger."""
        task = self._require(id)
        if task.completed:
            raise PreconditionFailed(f"Task already completed: {id}")
        if task.kind == Kind.PROJECT:
            pending = [
                cid
                for cid in task.child_ids
                if cid not in self._tasks or not self._tasks.get(cid).completed
            ]
            if pending:
                raise PreconditionFailed(
                    f"Complete all subtasks first ({len(pending)} remaining)",
                    details={"pending": pending},
                )

        status_before = self._ledger.status
        done = self._store(replace(task, completed=True, completed_at=self._clock()))
        report = CompletionReport(task=done)

        report.reward = rewards.confirmed_reward(done, status_before)
        logger.debug(
            "Reward for %s: %d staked, mp x%.2f, speed x%.2f -> %d",
            id,
            done.staked_points,
            rewards.mp_multiplier(status_before),
            rewards.speed_multiplier(done),
            report.reward,
        )
        report.levels_gained += self._ledger.credit_xp(report.reward)

        report.hp_recovered = rewards.hp_recovery(done)
        if report.hp_recovered > 0:
            self._ledger.adjust_hp(report.hp_recovered)
        report.mp_recovered = rewards.mp_recovery(done)
        if report.mp_recovered > 0:
            self._ledger.adjust_mp(report.mp_recovered)

        if done.kind == Kind.PROJECT:
            child_sum = sum(c.staked_points for c in self.children_of(id))
            report.project_bonus = rewards.project_completion_bonus(child_sum)
            report.levels_gained += self._ledger.credit_xp(report.project_bonus)
            self._credit_int(report, PROJECT_INT_EXP)

            if rewards.within_expected_duration(done):
                report.speed_bonus = rewards.speed_bonus(child_sum, done)
                report.levels_gained += self._ledger.credit_xp(report.speed_bonus)
                self._credit_speed(report, PROJECT_SPEED_EXP)

        # Projects pass this check too and get a second INT credit
        if rewards.should_gain_int_experience(done):
            self._credit_int(
                report, PROJECT_INT_EXP if done.kind == Kind.PROJECT else LEARNING_INT_EXP
            )
        if rewards.should_gain_speed_experience(done):
            self._credit_speed(report, FAST_SPEED_EXP)

        logger.info("Completed %s: %d XP total", id, report.total_xp)
        self._persist()
        return report

    def reopen(self, id: str) -> Task:
        """Mark a completed task open again. Granted rewards are kept."""
        task = self._require(id)
        if not task.completed:
            raise PreconditionFailed(f"Task is not completed: {id}")
        reopened = self._store(replace(task, completed=False, completed_at=None))
        self._persist()
        return reopened

    def promote_to_project(self, id: str) -> Task:
        task = self._require(id)
        promoted = self._store(replace(task, kind=Kind.PROJECT))
        logger.info("Promoted %s to project", id)
        self._persist()
        return promoted

    def demote_to_task(self, id: str) -> Task:
        """Turn a project back into a task; its children become independent tasks."""
        task = self._require(id)
        self._sever_children(task)
        self._detach_from_parent(task)
        demoted = self._store(replace(task, kind=Kind.TASK, child_ids=(), parent_id=None))
        logger.info("Demoted %s to task", id)
        self._persist()
        return demoted

    def add_subtask(
        self,
        parent_id: str,
        title: str,
        *,
        size: Size | str = Size.SMALL,
        priority: Priority | int | None = None,
        detail: str = "",
        due_date: date | None = None,
        tags: Iterable[str] | None = None,
    ) -> Task:
        """Attach a new subtask; the parent becomes a project.

        Unlike create, this is not gated on HP.
        """
        parent = self._tasks.get(parent_id)
        if parent is None:
            raise NotFound("Parent task", parent_id)
        if parent.parent_id is not None:
            raise PreconditionFailed(f"Subtasks cannot have subtasks: {parent_id}")
        title = _clean_title(title)
        size = _clean_size(size)
        priority = _clean_priority(priority)
        tags = _clean_tags(tags)
        due_date = _clean_due_date(due_date)

        subtask = self._with_points(
            Task(
                id=_new_id(),
                title=title,
                detail=detail or "",
                kind=Kind.SUBTASK,
                size=size,
                created_at=self._clock(),
                due_date=due_date,
                priority=priority,
                parent_id=parent_id,
                tags=tags,
            )
        )
        parent = self._attach_child(parent, subtask)

        bonus = rewards.decomposition_bonus(parent.size, len(parent.child_ids))
        if bonus > 0:
            self._ledger.credit_xp(bonus)
            self._ledger.credit_int_exp(DECOMPOSITION_INT_EXP)
            logger.info("Decomposition bonus for %s: %d XP", parent_id, bonus)

        self._persist()
        return subtask

    # Ledger operations

    def penalize(self, id: str, reason: rewards.PenaltyReason) -> tuple[int, int]:
        """Drain HP/MP for an overdue or abandoned task. Returns (hp, mp) lost."""
        task = self._require(id)
        hp, mp = rewards.penalty(task, reason)
        self._ledger.adjust_hp(-hp)
        self._ledger.adjust_mp(-mp)
        logger.info("Penalty for %s (%s): -%d HP, -%d MP", id, reason.value, hp, mp)
        self._persist()
        return hp, mp

    def record_focus_session(self, completed: bool = True) -> PlayerStatus:
        delta = rewards.FOCUS_COMPLETED_MP if completed else rewards.FOCUS_ABANDONED_MP
        status = self._ledger.adjust_mp(delta)
        self._persist()
        return status

    def level_up_int(self) -> PlayerStatus:
        status = self._ledger.level_up_int()
        self._persist()
        return status

    def level_up_speed(self) -> PlayerStatus:
        status = self._ledger.level_up_speed()
        self._persist()
        return status

    def reset_status(self) -> PlayerStatus:
        status = self._ledger.reset()
        self._persist()
        return status

    # Internals

    def _require(self, id: str) -> Task:
        task = self._tasks.get(id)
        if task is None:
            raise NotFound("Task", id)
        return task

    def _check_hp(self) -> None:
        hp = self._ledger.status.current_hp
        if hp <= 0:
            raise ResourceExhausted(hp)

    @staticmethod
    def _with_points(task: Task) -> Task:
        return replace(task, staked_points=rewards.staked_points(task))

    def _store(self, task: Task) -> Task:
        task = self._with_points(task)
        self._tasks.replace(task)
        return task

    def _attach_child(self, parent: Task, child: Task) -> Task:
        """Insert child and link both sides; parent is forced to a project."""
        self._tasks.insert_head(child)
        return self._store(
            replace(parent, kind=Kind.PROJECT, child_ids=(*parent.child_ids, child.id))
        )

    def _sever_children(self, task: Task) -> None:
        for cid in task.child_ids:
            child = self._tasks.get(cid)
            if child is not None and child.parent_id == task.id:
                self._store(replace(child, parent_id=None, kind=Kind.TASK))
        if task.child_ids and task.id in self._tasks:
            self._store(replace(self._tasks.get(task.id), child_ids=()))

    def _detach_from_parent(self, task: Task) -> None:
        parent = self._tasks.get(task.parent_id) if task.parent_id else None
        if parent is not None:
            self._store(
                replace(parent, child_ids=tuple(c for c in parent.child_ids if c != task.id))
            )

    def _credit_int(self, report: CompletionReport, amount: int) -> None:
        self._ledger.credit_int_exp(amount)
        report.int_exp += amount

    def _credit_speed(self, report: CompletionReport, amount: int) -> None:
        self._ledger.credit_speed_exp(amount)
        report.speed_exp += amount

    def _persist(self) -> None:
        """Hand current state to the backend. Failures never undo the mutation."""
        if self._backend is None:
            return
        try:
            self._backend.save(self._tasks.snapshot(), self._ledger.status)
        except PersistenceError as e:
            logger.warning("Failed to save state: %s", e)

"""Data models for questdo."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum, IntEnum

# Tags with a fixed side-effect on completion
TAG_RECOVERY = "recovery"
TAG_MENTAL_CARE = "mental-care"
TAG_LEARNING = "learning"


class Size(Enum):
    """Task size - drives base point value."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def base_points(self) -> int:
        return {
            Size.SMALL: 10,
            Size.MEDIUM: 25,
            Size.LARGE: 50,
        }[self]

    @property
    def expected_days(self) -> int:
        """Days a project of this size is expected to take."""
        return {
            Size.SMALL: 1,
            Size.MEDIUM: 3,
            Size.LARGE: 7,
        }[self]


class Kind(Enum):
    """Position of a task in the two-level hierarchy."""

    TASK = "task"
    PROJECT = "project"
    SUBTASK = "subtask"


class Priority(IntEnum):
    """Task priority levels (1-3)."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @property
    def multiplier(self) -> float:
        return {
            Priority.LOW: 1.0,
            Priority.MEDIUM: 1.2,
            Priority.HIGH: 1.5,
        }[self]


class TaskFilter(Enum):
    """Top-level list views."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    PROJECTS = "projects"


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Task:
    """Immutable task record.

    ``staked_points`` is a cache of the reward formulas; only the task
    service produces new copies with it recomputed.
    """

    id: str
    title: str
    kind: Kind
    size: Size
    created_at: datetime
    detail: str = ""
    completed: bool = False
    completed_at: datetime | None = None
    due_date: date | None = None
    priority: Priority | None = None
    parent_id: str | None = None
    child_ids: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    staked_points: int = 0

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def to_dict(self) -> dict:
        """Serialize to dict for formatters and backends."""
        return {
            "id": self.id,
            "title": self.title,
            "detail": self.detail,
            "kind": self.kind.value,
            "size": self.size.value,
            "completed": self.completed,
            "created_at": self.created_at.isoformat(),
            "completed_at": _iso(self.completed_at),
            "due_date": _iso(self.due_date),
            "priority": int(self.priority) if self.priority else None,
            "parent_id": self.parent_id,
            "child_ids": list(self.child_ids),
            "tags": list(self.tags),
            "staked_points": self.staked_points,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Task:
        completed_at = data.get("completed_at")
        due_date = data.get("due_date")
        return cls(
            id=data["id"],
            title=data["title"],
            detail=data.get("detail") or "",
            kind=Kind(data["kind"]),
            size=Size(data["size"]),
            completed=bool(data.get("completed", False)),
            created_at=datetime.fromisoformat(data["created_at"]),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            due_date=date.fromisoformat(due_date) if due_date else None,
            priority=Priority(data["priority"]) if data.get("priority") else None,
            parent_id=data.get("parent_id"),
            child_ids=tuple(data.get("child_ids") or ()),
            tags=tuple(data.get("tags") or ()),
            staked_points=int(data.get("staked_points", 0)),
        )


@dataclass(frozen=True)
class PlayerStatus:
    """Player-style progression record (one per installation)."""

    current_hp: int = 100
    max_hp: int = 100
    current_mp: int = 100
    max_mp: int = 100
    xp_total: int = 0
    level: int = 1
    level_int: int = 1
    level_speed: int = 1
    int_exp: int = 0
    speed_exp: int = 0

    def to_dict(self) -> dict:
        return {
            "current_hp": self.current_hp,
            "max_hp": self.max_hp,
            "current_mp": self.current_mp,
            "max_mp": self.max_mp,
            "xp_total": self.xp_total,
            "level": self.level,
            "level_int": self.level_int,
            "level_speed": self.level_speed,
            "int_exp": self.int_exp,
            "speed_exp": self.speed_exp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PlayerStatus:
        defaults = cls()
        return cls(**{key: int(data.get(key, value)) for key, value in defaults.to_dict().items()})


@dataclass(frozen=True)
class ProjectProgress:
    """Progress of a project across its subtasks."""

    completed_children: int
    total_children: int
    completed_reward: int
    total_reward: int
    completion_bonus: int
    speed_bonus_eligible: bool
    speed_bonus_days_left: int
    speed_bonus: int

    @property
    def ratio(self) -> float:
        if self.total_children == 0:
            return 0.0
        return self.completed_children / self.total_children

    @property
    def reward_ratio(self) -> float:
        if self.total_reward == 0:
            return 0.0
        return self.completed_reward / self.total_reward


@dataclass
class CompletionReport:
    """Everything credited to the ledger when a task was completed."""

    task: Task
    reward: int = 0
    hp_recovered: int = 0
    mp_recovered: int = 0
    project_bonus: int = 0
    speed_bonus: int = 0
    int_exp: int = 0
    speed_exp: int = 0
    levels_gained: int = 0

    @property
    def total_xp(self) -> int:
        return self.reward + self.project_bonus + self.speed_bonus

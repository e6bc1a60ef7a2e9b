"""Base backend protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from questdo.models import PlayerStatus, Task


@dataclass
class LoadedState:
    """Everything a backend returns on load. Empty on first run."""

    tasks: list[Task] = field(default_factory=list)
    status: PlayerStatus | None = None

    @property
    def is_empty(self) -> bool:
        return not self.tasks and self.status is None


@runtime_checkable
class StateBackend(Protocol):
    """Protocol for state storage backends.

    Backends store the task collection (in display order) and the player
    status as whole records. Failures are raised as PersistenceError.
    """

    def load(self) -> LoadedState:
        """Read stored state, or an empty LoadedState on first run."""
        ...

    def save(self, tasks: list[Task], status: PlayerStatus) -> None:
        """Replace stored state with the given records."""
        ...

"""JSON file backend."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from questdo.backends.base import LoadedState
from questdo.errors import PersistenceError
from questdo.models import PlayerStatus, Task

logger = logging.getLogger("questdo.backends.json")

FORMAT_VERSION = 1


class JsonBackend:
    """Single JSON document - easy to inspect and back up by hand."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def storage_path(self) -> Path:
        return self._path

    def load(self) -> LoadedState:
        if not self._path.exists():
            return LoadedState()
        try:
            content = self._path.read_text()
        except OSError as e:
            raise PersistenceError(f"Cannot read {self._path}: {e}") from e
        if not content.strip():
            return LoadedState()
        try:
            data = json.loads(content)
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            tasks = [Task.from_dict(item) for item in data.get("tasks") or []]
            status_data = data.get("status")
            status = PlayerStatus.from_dict(status_data) if status_data else None
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupted state file {self._path}: {e}") from e
        return LoadedState(tasks=tasks, status=status)

    def save(self, tasks: list[Task], status: PlayerStatus) -> None:
        data = {
            "version": FORMAT_VERSION,
            "tasks": [task.to_dict() for task in tasks],
            "status": status.to_dict(),
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file, then swap it in
            fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".questdo-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp, self._path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Cannot write {self._path}: {e}") from e
        logger.debug("Wrote %d tasks to %s", len(tasks), self._path)

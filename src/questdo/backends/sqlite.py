"""SQLite backend."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from questdo.backends.base import LoadedState
from questdo.errors import PersistenceError
from questdo.models import Kind, PlayerStatus, Priority, Size, Task

_STATUS_COLUMNS = tuple(PlayerStatus().to_dict())


class SqliteBackend:
    """SQLite backend - default storage for the CLI."""

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            position INTEGER NOT NULL,
            title TEXT NOT NULL,
            detail TEXT NOT NULL DEFAULT '',
            kind TEXT NOT NULL,
            size TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            completed_at TEXT,
            due_date TEXT,
            priority INTEGER,
            parent_id TEXT,
            child_ids TEXT,
            tags TEXT,
            staked_points INTEGER NOT NULL DEFAULT 0
        );
        CREATE INDEX IF NOT EXISTS idx_position ON tasks(position);
        CREATE INDEX IF NOT EXISTS idx_parent ON tasks(parent_id);
        CREATE TABLE IF NOT EXISTS player_status (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            current_hp INTEGER NOT NULL,
            max_hp INTEGER NOT NULL,
            current_mp INTEGER NOT NULL,
            max_mp INTEGER NOT NULL,
            xp_total INTEGER NOT NULL,
            level INTEGER NOT NULL,
            level_int INTEGER NOT NULL,
            level_speed INTEGER NOT NULL,
            int_exp INTEGER NOT NULL,
            speed_exp INTEGER NOT NULL
        );
    """

    _TASK_COLUMNS = (
        "id, title, detail, kind, size, completed, created_at, completed_at, "
        "due_date, priority, parent_id, child_ids, tags, staked_points"
    )

    def __init__(self, db_path: Path):
        self._path = db_path
        self._conn: sqlite3.Connection | None = None
        self._ensure_schema()

    def __del__(self) -> None:
        """Clean up connection on garbage collection."""
        self.close()

    @property
    def storage_path(self) -> Path:
        return self._path

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def load(self) -> LoadedState:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {self._TASK_COLUMNS} FROM tasks ORDER BY position ASC"
            ).fetchall()
            status_row = conn.execute(
                f"SELECT {', '.join(_STATUS_COLUMNS)} FROM player_status WHERE id = 1"
            ).fetchone()

        try:
            tasks = [self._row_to_task(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Corrupted task row in {self._path}: {e}") from e
        status = PlayerStatus(**dict(zip(_STATUS_COLUMNS, status_row))) if status_row else None
        return LoadedState(tasks=tasks, status=status)

    def save(self, tasks: list[Task], status: PlayerStatus) -> None:
        placeholders = ", ".join("?" for _ in _STATUS_COLUMNS)
        with self._connect() as conn:
            conn.execute("DELETE FROM tasks")
            conn.executemany(
                f"INSERT INTO tasks (position, {self._TASK_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [(position, *self._task_to_row(task)) for position, task in enumerate(tasks)],
            )
            conn.execute(
                f"INSERT OR REPLACE INTO player_status (id, {', '.join(_STATUS_COLUMNS)}) "
                f"VALUES (1, {placeholders})",
                tuple(status.to_dict().values()),
            )

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Get database connection, reusing existing connection if available."""
        try:
            if self._conn is None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(self._path)
                self._conn.execute("PRAGMA journal_mode = WAL")
                self._conn.execute("PRAGMA busy_timeout = 5000")
                self._conn.execute("PRAGMA synchronous = NORMAL")
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Cannot open database {self._path}: {e}") from e
        try:
            yield self._conn
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise PersistenceError(f"Database error in {self._path}: {e}") from e
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(self.SCHEMA)

    @staticmethod
    def _task_to_row(task: Task) -> tuple:
        return (
            task.id,
            task.title,
            task.detail,
            task.kind.value,
            task.size.value,
            int(task.completed),
            task.created_at.isoformat(),
            task.completed_at.isoformat() if task.completed_at else None,
            task.due_date.isoformat() if task.due_date else None,
            int(task.priority) if task.priority else None,
            task.parent_id,
            json.dumps(list(task.child_ids)) if task.child_ids else None,
            json.dumps(list(task.tags)) if task.tags else None,
            task.staked_points,
        )

    @staticmethod
    def _row_to_task(row: tuple) -> Task:
        (
            id,
            title,
            detail,
            kind,
            size,
            completed,
            created_at,
            completed_at,
            due_date,
            priority,
            parent_id,
            child_ids,
            tags,
            staked_points,
        ) = row
        return Task(
            id=id,
            title=title,
            detail=detail or "",
            kind=Kind(kind),
            size=Size(size),
            completed=bool(completed),
            created_at=datetime.fromisoformat(created_at),
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            due_date=date.fromisoformat(due_date) if due_date else None,
            priority=Priority(priority) if priority else None,
            parent_id=parent_id,
            child_ids=tuple(json.loads(child_ids)) if child_ids else (),
            tags=tuple(json.loads(tags)) if tags else (),
            staked_points=staked_points,
        )

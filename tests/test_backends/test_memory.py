"""Tests for in-memory backend."""

from datetime import datetime

from questdo.backends.memory import MemoryBackend
from questdo.models import Kind, PlayerStatus, Size, Task


class TestMemoryBackend:
    def test_empty(self):
        assert MemoryBackend().load().is_empty

    def test_seeded(self):
        task = Task(id="a", title="A", kind=Kind.TASK, size=Size.SMALL, created_at=datetime.now())
        loaded = MemoryBackend([task], PlayerStatus(level=2)).load()
        assert loaded.tasks == [task]
        assert loaded.status.level == 2

    def test_save_counts(self):
        backend = MemoryBackend()
        backend.save([], PlayerStatus())
        backend.save([], PlayerStatus(xp_total=10))
        assert backend.save_count == 2
        assert backend.load().status.xp_total == 10

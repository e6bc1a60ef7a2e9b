"""Tests for data models."""

from datetime import date, datetime

import pytest

from questdo.models import (
    CompletionReport,
    Kind,
    PlayerStatus,
    Priority,
    ProjectProgress,
    Size,
    Task,
)


def _task(**kwargs) -> Task:
    defaults = dict(
        id="abc12345",
        title="Write report",
        kind=Kind.TASK,
        size=Size.MEDIUM,
        created_at=datetime(2024, 1, 9, 10, 30),
    )
    defaults.update(kwargs)
    return Task(**defaults)


class TestSize:
    def test_base_points(self):
        assert Size.SMALL.base_points == 10
        assert Size.MEDIUM.base_points == 25
        assert Size.LARGE.base_points == 50

    def test_expected_days(self):
        assert Size.SMALL.expected_days == 1
        assert Size.MEDIUM.expected_days == 3
        assert Size.LARGE.expected_days == 7


class TestPriority:
    def test_values(self):
        assert Priority.LOW == 1
        assert Priority.MEDIUM == 2
        assert Priority.HIGH == 3

    def test_multiplier(self):
        assert Priority.LOW.multiplier == 1.0
        assert Priority.MEDIUM.multiplier == 1.2
        assert Priority.HIGH.multiplier == 1.5


class TestTask:
    def test_create_minimal(self):
        task = _task()
        assert task.completed is False
        assert task.completed_at is None
        assert task.due_date is None
        assert task.priority is None
        assert task.parent_id is None
        assert task.child_ids == ()
        assert task.tags == ()

    def test_immutable(self):
        task = _task()
        with pytest.raises(AttributeError):
            task.title = "Changed"  # type: ignore

    def test_has_tag(self):
        task = _task(tags=("learning",))
        assert task.has_tag("learning")
        assert not task.has_tag("recovery")

    def test_to_dict(self):
        task = _task(due_date=date(2024, 2, 1), priority=Priority.HIGH, tags=("a", "b"))
        d = task.to_dict()

        assert d["kind"] == "task"
        assert d["size"] == "medium"
        assert d["due_date"] == "2024-02-01"
        assert d["priority"] == 3
        assert d["tags"] == ["a", "b"]
        assert d["completed_at"] is None

    def test_to_dict_without_priority(self):
        assert _task().to_dict()["priority"] is None

    def test_from_dict_roundtrip(self):
        task = _task(
            kind=Kind.PROJECT,
            completed=True,
            completed_at=datetime(2024, 1, 10, 8, 0),
            due_date=date(2024, 2, 1),
            priority=Priority.MEDIUM,
            child_ids=("c1", "c2"),
            staked_points=42,
        )
        assert Task.from_dict(task.to_dict()) == task

    def test_from_dict_absent_dates_stay_absent(self):
        data = _task().to_dict()
        data.pop("completed_at")
        data.pop("due_date")

        task = Task.from_dict(data)

        assert task.completed_at is None
        assert task.due_date is None

    def test_epoch_is_a_real_date(self):
        epoch = datetime(1970, 1, 1)
        task = _task(completed=True, completed_at=epoch)
        assert Task.from_dict(task.to_dict()).completed_at == epoch


class TestPlayerStatus:
    def test_defaults(self):
        s = PlayerStatus()
        assert (s.current_hp, s.max_hp, s.current_mp, s.max_mp) == (100, 100, 100, 100)
        assert s.xp_total == 0
        assert s.level == 1
        assert s.level_int == 1
        assert s.level_speed == 1
        assert s.int_exp == 0
        assert s.speed_exp == 0

    def test_from_dict_fills_missing_fields(self):
        s = PlayerStatus.from_dict({"xp_total": 150, "level": 2})
        assert s.xp_total == 150
        assert s.level == 2
        assert s.max_hp == 100

    def test_roundtrip(self):
        s = PlayerStatus(current_hp=40, max_hp=110, level=2, xp_total=130, int_exp=7)
        assert PlayerStatus.from_dict(s.to_dict()) == s


class TestProjectProgress:
    def test_ratio_with_no_children(self):
        p = ProjectProgress(0, 0, 0, 0, 0, True, 3, 0)
        assert p.ratio == 0.0
        assert p.reward_ratio == 0.0

    def test_ratio(self):
        p = ProjectProgress(1, 4, 10, 40, 8, False, 0, 0)
        assert p.ratio == 0.25
        assert p.reward_ratio == 0.25


class TestCompletionReport:
    def test_total_xp(self):
        report = CompletionReport(task=_task(), reward=20, project_bonus=6, speed_bonus=9)
        assert report.total_xp == 35

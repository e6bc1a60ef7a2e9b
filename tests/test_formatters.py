"""Tests for output formatters."""

import json
from datetime import date, datetime

import pytest
from rich.table import Table

from questdo.formatters import FORMATTERS, get_formatter
from questdo.formatters.jsonl import JsonlFormatter
from questdo.formatters.table import TableFormatter
from questdo.models import Kind, Priority, Size, Task


@pytest.fixture
def sample_items():
    return [
        Task(
            id="abc12345",
            title="Launch site",
            kind=Kind.PROJECT,
            size=Size.LARGE,
            created_at=datetime(2024, 1, 9, 10, 30),
            child_ids=("def67890",),
            staked_points=55,
        ),
        Task(
            id="def67890",
            title="Buy domain",
            kind=Kind.SUBTASK,
            size=Size.SMALL,
            created_at=datetime(2024, 1, 9, 10, 31),
            completed=True,
            completed_at=datetime(2024, 1, 9, 11, 0),
            parent_id="abc12345",
            priority=Priority.HIGH,
            due_date=date(2024, 1, 20),
            tags=("web",),
            staked_points=26,
        ),
    ]


class TestGetFormatter:
    def test_registry(self):
        assert set(FORMATTERS) == {"table", "jsonl"}

    def test_table(self):
        formatter = get_formatter("table")
        assert isinstance(formatter, TableFormatter)
        assert formatter.show_id is False

    def test_table_with_options(self):
        formatter = get_formatter("table:%Y-%m-%d:id")
        assert formatter.datetime_fmt == "%Y-%m-%d"
        assert formatter.show_id is True

    def test_show_id_from_config(self):
        assert get_formatter("table", show_id=True).show_id is True

    def test_jsonl(self):
        assert isinstance(get_formatter("jsonl"), JsonlFormatter)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown format"):
            get_formatter("yaml")


class TestTableFormatter:
    def test_empty(self):
        assert TableFormatter().format([]) == "[dim]No tasks[/dim]"

    def test_rows(self, sample_items):
        table = TableFormatter().format(sample_items)
        assert isinstance(table, Table)
        assert table.row_count == 2
        headers = [c.header for c in table.columns]
        assert headers == ["Done", "Pri", "Kind", "Created", "Task", "Pts", "Due", "Tags"]

    def test_optional_columns_hidden(self, sample_items):
        table = TableFormatter().format(sample_items[:1])
        headers = [c.header for c in table.columns]
        assert "Due" not in headers
        assert "Tags" not in headers

    def test_id_column(self, sample_items):
        table = TableFormatter(show_id=True).format(sample_items)
        assert table.columns[0].header == "ID"


class TestJsonlFormatter:
    def test_empty(self):
        assert JsonlFormatter().format([]) == ""

    def test_one_object_per_line(self, sample_items):
        lines = JsonlFormatter().format(sample_items).splitlines()
        assert len(lines) == 2
        first, second = (json.loads(line) for line in lines)
        assert first["kind"] == "project"
        assert first["child_ids"] == ["def67890"]
        assert second["priority"] == 3
        assert second["due_date"] == "2024-01-20"

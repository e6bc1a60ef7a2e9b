"""Rich table formatter."""

from datetime import date
from typing import Any

from rich.table import Table

from questdo.models import Kind, Priority, Task


class TableFormatter:
    """Format tasks as a Rich table."""

    NAME = "table"

    def __init__(self, datetime_fmt: str = "%m-%d %H:%M", show_id: bool = False):
        self.datetime_fmt = datetime_fmt
        self.show_id = show_id

    def _format_datetime(self, dt) -> str:
        try:
            return dt.strftime(self.datetime_fmt)
        except ValueError:
            return dt.strftime("%m-%d %H:%M")

    def _format_priority(self, priority: Priority | None) -> str:
        from questdo.ui.formatting import format_priority

        return format_priority(priority)

    def _format_tags(self, tags: tuple[str, ...]) -> str:
        from questdo.ui.formatting import MAX_DISPLAY_TAGS

        if not tags:
            return ""
        # Table uses cyan for visibility in dedicated column
        return " ".join(f"[cyan]#{t}[/cyan]" for t in tags[:MAX_DISPLAY_TAGS])

    def _format_due(self, due_date: date | None, completed: bool) -> str:
        if not due_date:
            return ""
        date_str = due_date.isoformat()
        if completed:
            return f"[dim]{date_str}[/dim]"
        if due_date < date.today():
            return f"[red bold]{date_str}[/red bold]"
        return date_str

    def _format_title(self, item: Task) -> str:
        title = item.title
        if item.kind == Kind.SUBTASK:
            title = f"  └ {title}"
        if item.kind == Kind.PROJECT:
            title = f"[bold]{title}[/bold] [dim]({len(item.child_ids)})[/dim]"
        return title

    def format(self, items: list[Task]) -> Any:
        if not items:
            return "[dim]No tasks[/dim]"

        from questdo.ui.formatting import format_kind

        has_tags = any(item.tags for item in items)
        has_due = any(item.due_date for item in items)

        table = Table(show_header=True, header_style="bold")

        if self.show_id:
            table.add_column("ID", style="dim")
        table.add_column("Done", width=6)
        table.add_column("Pri", width=5)
        table.add_column("Kind", width=8)
        table.add_column("Created", width=len(self._format_datetime(items[0].created_at)))
        table.add_column("Task")
        table.add_column("Pts", justify="right")
        if has_due:
            table.add_column("Due", width=12)
        if has_tags:
            table.add_column("Tags")

        for item in items:
            # Colorblind-safe: blue checkmark for done
            status = "[blue]✓[/blue]" if item.completed else "[dim]•[/dim]"

            row = []
            if self.show_id:
                row.append(item.id)
            row.append(status)
            row.append(self._format_priority(item.priority))
            row.append(format_kind(item.kind))
            row.append(self._format_datetime(item.created_at))
            row.append(self._format_title(item))
            row.append(str(item.staked_points))
            if has_due:
                row.append(self._format_due(item.due_date, item.completed))
            if has_tags:
                row.append(self._format_tags(item.tags))

            table.add_row(*row)

        return table

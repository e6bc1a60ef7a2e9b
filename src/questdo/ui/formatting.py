"""Shared formatting utilities for priority, tags and progress display."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from questdo.models import Kind, Priority

MAX_DISPLAY_TAGS = 3

# Priority indicators (Rich markup)
PRIORITY_INDICATORS: dict[int, str] = {
    3: "[red bold]!![/red bold]",
    2: "[yellow]![/yellow]",
    1: "[dim]↓[/dim]",
}

KIND_LABELS: dict[str, str] = {
    "task": "[dim]task[/dim]",
    "project": "[magenta]project[/magenta]",
    "subtask": "[cyan]sub[/cyan]",
}


def format_priority(priority: Priority | None) -> str:
    """Format priority as a Rich markup indicator."""
    if not priority:
        return ""
    return PRIORITY_INDICATORS.get(int(priority), "")


def format_kind(kind: Kind) -> str:
    return KIND_LABELS.get(kind.value, kind.value)


def format_tags(tags: tuple[str, ...] | list[str] | None, max_tags: int | None = None) -> str:
    """Format tags as dim hashtags.

    Returns:
        Rich markup string with formatted tags (space-prefixed if non-empty)
    """
    if not tags:
        return ""
    limit = max_tags if max_tags is not None else MAX_DISPLAY_TAGS
    formatted = " ".join(f"[dim]#{t}[/dim]" for t in tags[:limit])
    return f" {formatted}" if formatted else ""


def format_bar(current: int, total: int, width: int = 20, color: str = "green") -> str:
    """Text progress bar like ``[green]██████[/green][dim]░░░░[/dim] 3/10``."""
    filled = 0 if total <= 0 else round(width * min(current, total) / total)
    bar = f"[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim]"
    return f"{bar} {current}/{total}"

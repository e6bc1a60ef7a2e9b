"""CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console

if TYPE_CHECKING:
    from questdo.config import Config
    from questdo.core import TaskService
    from questdo.models import CompletionReport, Task

app = typer.Typer(
    name="questdo",
    help="Gamified task manager - earn XP, level up, keep your HP up.",
    no_args_is_help=True,
)
console = Console()


def _get_config() -> Config:
    """Lazy import and load config."""
    from questdo.config import Config

    return Config.load()


def _get_service(config: Config) -> TaskService:
    """Lazy import and create service."""
    from questdo.core import TaskService

    with _errors():
        return TaskService.from_config(config)


@contextmanager
def _errors() -> Iterator[None]:
    """Turn engine errors into a red message and exit code 1."""
    from questdo.errors import QuestError

    try:
        yield
    except QuestError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _parse_tags(tags: str | None) -> list[str] | None:
    if tags is None:
        return None
    return [t.strip() for t in tags.split(",") if t.strip()]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show engine log")] = False,
):
    """Configure logging before any command runs."""
    from questdo.log import setup_logging

    cfg = _get_config()
    setup_logging("info" if verbose else cfg.log_level)


@app.command()
def add(
    title: Annotated[str, typer.Argument(help="Task title (use quotes)")],
    size: Annotated[str, typer.Option("--size", "-s", help="small/medium/large")] = "medium",
    priority: Annotated[
        str | None, typer.Option("--priority", "-P", help="1-3 or low/medium/high")
    ] = None,
    due: Annotated[str | None, typer.Option("--due", help="Due date YYYY-MM-DD")] = None,
    tags: Annotated[str | None, typer.Option("--tags", "-t", help="Comma-separated tags")] = None,
    detail: Annotated[str, typer.Option("--detail", "-D", help="Longer description")] = "",
    kind: Annotated[
        str | None, typer.Option("--kind", "-k", help="task/project (default: from size)")
    ] = None,
):
    """Add a task. Large tasks become projects."""
    from questdo.api import Quest

    cfg = _get_config()
    quest = Quest(_get_service(cfg))

    with _errors():
        task = quest.add(
            title,
            size=size,
            kind=kind,
            priority=priority,
            detail=detail,
            due=due,
            tags=_parse_tags(tags),
        )

    console.print(
        f"[green]✓[/green] Added {task.kind.value}: {task.title} "
        f"[yellow]+{task.staked_points} pts staked[/yellow] [dim]({task.id})[/dim]"
    )


@app.command()
def sub(
    parent: Annotated[str, typer.Argument(help="Parent task ID (or partial)")],
    title: Annotated[str, typer.Argument(help="Subtask title")],
    size: Annotated[str, typer.Option("--size", "-s", help="small/medium/large")] = "small",
    priority: Annotated[
        str | None, typer.Option("--priority", "-P", help="1-3 or low/medium/high")
    ] = None,
    due: Annotated[str | None, typer.Option("--due", help="Due date YYYY-MM-DD")] = None,
    tags: Annotated[str | None, typer.Option("--tags", "-t", help="Comma-separated tags")] = None,
):
    """Add a subtask to a task (the task becomes a project)."""
    from questdo.api import Quest

    cfg = _get_config()
    svc = _get_service(cfg)
    parent_task = _require_item(svc, parent)
    xp_before = svc.status.xp_total

    with _errors():
        task = Quest(svc).add_subtask(
            parent_task.id,
            title,
            size=size,
            priority=priority,
            due=due,
            tags=_parse_tags(tags),
        )

    console.print(
        f"[green]✓[/green] Added subtask to [bold]{parent_task.title}[/bold]: {task.title} "
        f"[dim]({task.id})[/dim]"
    )
    bonus = svc.status.xp_total - xp_before
    if bonus > 0:
        console.print(f"[magenta]★[/magenta] Decomposition bonus: +{bonus} XP, +25 INT exp")


@app.command(name="ls")
@app.command(name="list")
def list_tasks(
    filter_: Annotated[
        str, typer.Option("--filter", "-F", help="all/active/completed/projects")
    ] = "active",
    format_: Annotated[str | None, typer.Option("-f", "--format", help="Output format")] = None,
    flat: Annotated[bool, typer.Option("--flat", help="Hide subtasks")] = False,
):
    """List tasks."""
    from questdo.api import _to_filter
    from questdo.formatters import get_formatter
    from questdo.models import Kind

    cfg = _get_config()
    svc = _get_service(cfg)

    with _errors():
        view = _to_filter(filter_)
        formatter = get_formatter(format_ or cfg.default_format, show_id=cfg.show_ids)

    items = svc.list(view)
    if not flat:
        nested: list[Task] = []
        for item in items:
            nested.append(item)
            if item.kind == Kind.PROJECT:
                nested.extend(svc.children_of(item.id))
        items = nested

    output = formatter.format(items)
    if formatter.NAME == "jsonl":
        _print_raw(output)
    else:
        console.print(output)


@app.command()
def show(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Show a task, and project progress for projects."""
    from questdo.models import Kind
    from questdo.ui.formatting import format_bar, format_kind, format_priority, format_tags

    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    state = "[blue]done[/blue]" if task.completed else "open"
    console.print(f"[bold]{task.title}[/bold] [dim]({task.id})[/dim]")
    line = f"{format_kind(task.kind)} · {task.size.value} · {state}"
    if task.priority:
        line += f" · priority {int(task.priority)} {format_priority(task.priority)}"
    console.print(line + format_tags(task.tags))
    if task.detail:
        console.print(task.detail)
    console.print(f"[bold]Staked:[/bold] {task.staked_points} pts")
    console.print(f"[bold]Created:[/bold] {task.created_at:%Y-%m-%d %H:%M}")
    if task.due_date:
        console.print(f"[bold]Due:[/bold] {task.due_date.isoformat()}")
    if task.completed_at:
        console.print(f"[bold]Completed:[/bold] {task.completed_at:%Y-%m-%d %H:%M}")
    if task.parent_id:
        parent = svc.get(task.parent_id)
        console.print(f"[bold]Project:[/bold] {parent.title if parent else task.parent_id}")

    if task.kind == Kind.PROJECT:
        progress = svc.progress(task.id)
        console.print(
            f"[bold]Progress:[/bold] "
            f"{format_bar(progress.completed_children, progress.total_children)}"
        )
        console.print(
            f"[bold]Reward:[/bold] {progress.completed_reward}/{progress.total_reward} pts, "
            f"completion bonus +{progress.completion_bonus}"
        )
        if progress.speed_bonus_eligible:
            left = "" if task.completed else f" ({progress.speed_bonus_days_left}d left)"
            console.print(f"[bold]Speed bonus:[/bold] +{progress.speed_bonus}{left}")
        for child in svc.children_of(task.id):
            mark = "[blue]✓[/blue]" if child.completed else "[dim]•[/dim]"
            console.print(
                f"  {mark} {child.title} [dim]({child.id}, {child.staked_points} pts)[/dim]"
            )


@app.command()
def edit(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
    title: Annotated[str | None, typer.Option("--title", help="New title")] = None,
    size: Annotated[str | None, typer.Option("--size", "-s", help="small/medium/large")] = None,
    priority: Annotated[str | None, typer.Option("--priority", "-P", help="1-3")] = None,
    due: Annotated[str | None, typer.Option("--due", help="Due date YYYY-MM-DD")] = None,
    no_due: Annotated[bool, typer.Option("--no-due", help="Clear due date")] = False,
    tags: Annotated[str | None, typer.Option("--tags", "-t", help="Replace tags")] = None,
    detail: Annotated[str | None, typer.Option("--detail", "-D", help="New detail")] = None,
):
    """Edit task fields. Staked points are recalculated."""
    from questdo.api import Quest, _UNSET

    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    with _errors():
        updated = Quest(svc).update(
            task.id,
            title=title if title is not None else _UNSET,
            size=size if size is not None else _UNSET,
            priority=priority if priority is not None else _UNSET,
            due=None if no_due else (due if due is not None else _UNSET),
            tags=_parse_tags(tags) if tags is not None else _UNSET,
            detail=detail if detail is not None else _UNSET,
        )

    console.print(
        f"[green]✓[/green] Updated: {updated.title} "
        f"[yellow]{updated.staked_points} pts[/yellow] [dim]({updated.kind.value})[/dim]"
    )


@app.command()
def done(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Complete a task and collect its reward."""
    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    with _errors():
        report = svc.complete(task.id)

    _print_report(report)


@app.command()
def reopen(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Reopen a completed task. Rewards already granted are kept."""
    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    with _errors():
        svc.reopen(task.id)

    console.print(f"[yellow]↩[/yellow] Reopened: {task.title}")


@app.command()
def toggle(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Toggle completion."""
    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    if task.completed:
        with _errors():
            svc.reopen(task.id)
        console.print(f"[yellow]↩[/yellow] Reopened: {task.title}")
        return

    with _errors():
        report = svc.complete(task.id)
    _print_report(report)


@app.command(name="remove")
@app.command()
def rm(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Remove a task. Subtasks of a removed project become plain tasks."""
    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    with _errors():
        svc.delete(task.id)

    console.print(f"[yellow]✓[/yellow] Removed: {task.title}")
    if task.child_ids:
        console.print(f"[dim]{len(task.child_ids)} subtask(s) are now independent tasks[/dim]")


@app.command()
def promote(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Turn a task into a project."""
    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    with _errors():
        svc.promote_to_project(task.id)

    console.print(f"[green]✓[/green] Promoted to project: {task.title}")


@app.command()
def demote(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
):
    """Turn a project back into a task. Its subtasks become independent."""
    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    with _errors():
        svc.demote_to_task(task.id)

    console.print(f"[green]✓[/green] Demoted to task: {task.title}")


@app.command()
def status():
    """Show HP, MP, level and skills."""
    from questdo.rewards import exp_for_level, next_level_xp
    from questdo.ui.formatting import format_bar

    cfg = _get_config()
    svc = _get_service(cfg)
    s = svc.status

    console.print(f"[bold]Level {s.level}[/bold]  [dim]{s.xp_total} XP[/dim]")
    console.print(f"[bold]HP[/bold]    {format_bar(s.current_hp, s.max_hp, color='red')}")
    console.print(f"[bold]MP[/bold]    {format_bar(s.current_mp, s.max_mp, color='blue')}")
    console.print(
        f"[bold]XP[/bold]    {format_bar(s.xp_total % 100, 100, color='yellow')} "
        f"[dim](next level at {next_level_xp(s.xp_total)})[/dim]"
    )
    console.print(
        f"[bold]INT[/bold]   Lv {s.level_int}  "
        f"{format_bar(s.int_exp, exp_for_level(s.level_int), color='magenta')}"
    )
    console.print(
        f"[bold]Speed[/bold] Lv {s.level_speed}  "
        f"{format_bar(s.speed_exp, exp_for_level(s.level_speed), color='cyan')}"
    )
    if s.current_hp <= 0:
        console.print("[red]HP depleted - complete a #recovery task before adding new ones[/red]")


@app.command()
def focus(
    abandoned: Annotated[
        bool, typer.Option("--abandoned", help="Session was abandoned (costs MP)")
    ] = False,
):
    """Record a focus session: +10 MP when finished, -5 MP when abandoned."""
    cfg = _get_config()
    svc = _get_service(cfg)

    with _errors():
        s = svc.record_focus_session(completed=not abandoned)

    verb = "[yellow]abandoned[/yellow]" if abandoned else "[green]finished[/green]"
    console.print(f"Focus session {verb}. MP {s.current_mp}/{s.max_mp}")


@app.command()
def penalize(
    id: Annotated[str, typer.Argument(help="Task ID (or partial)")],
    reason: Annotated[str, typer.Option("--reason", "-r", help="overdue/abandoned")] = "overdue",
):
    """Apply an HP/MP penalty for an overdue or abandoned task."""
    from questdo.api import Quest

    cfg = _get_config()
    svc = _get_service(cfg)
    task = _require_item(svc, id)

    with _errors():
        hp, mp = Quest(svc).penalize(task.id, reason)

    console.print(f"[red]✗[/red] Penalty for {task.title}: -{hp} HP, -{mp} MP")


@app.command()
def reset(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
):
    """Reset player status to defaults. Tasks are kept."""
    if not yes and not typer.confirm("Reset level, XP, HP and MP?"):
        raise typer.Exit(0)

    cfg = _get_config()
    svc = _get_service(cfg)
    svc.reset_status()
    console.print("[yellow]✓[/yellow] Player status reset")


@app.command()
def export(
    output: Annotated[str | None, typer.Option("-o", "--output", help="Output file")] = None,
):
    """Export all tasks to jsonl format."""
    from pathlib import Path

    from questdo.formatters.jsonl import JsonlFormatter

    cfg = _get_config()
    svc = _get_service(cfg)
    items = svc.all()
    content = JsonlFormatter().format(items)

    if output:
        Path(output).write_text(content + "\n" if content else "")
        console.print(f"[green]✓[/green] Exported {len(items)} tasks to {output}")
    elif content:
        _print_raw(content)


@app.command()
def info():
    """Show current storage info."""
    cfg = _get_config()
    svc = _get_service(cfg)
    items = svc.all()
    active = len(svc.active())

    console.print(f"[bold]Backend:[/bold] {svc.backend_name}")
    console.print(f"[bold]Storage:[/bold] {svc.storage_path}")
    console.print(
        f"[bold]Tasks:[/bold] {len(items)} total ({active} active, {len(items) - active} done)"
    )


@app.command()
def config(
    key: Annotated[str | None, typer.Argument(help="Setting to change")] = None,
    value: Annotated[str | None, typer.Argument(help="New value")] = None,
):
    """Show settings, or set one: questdo config default_backend json."""
    cfg = _get_config()

    if key is None:
        for name, desc, current in cfg.get_settings():
            console.print(f"[bold]{name}[/bold] = {current} [dim]{desc}[/dim]")
        return

    if value is None:
        console.print("[red]Error:[/red] Provide a value")
        raise typer.Exit(1)

    try:
        cfg.set(key, value)
    except (KeyError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {key} = {getattr(cfg, key)}")


# Helpers


def _find_item_by_partial_id(svc: TaskService, partial_id: str) -> Task | None:
    """Find item by full or partial ID."""
    item = svc.get(partial_id)
    if item:
        return item

    matches = [item for item in svc.all() if item.id.startswith(partial_id)]

    if len(matches) == 0:
        return None
    elif len(matches) == 1:
        return matches[0]
    else:
        console.print(f"[yellow]Ambiguous ID '{partial_id}'. Matches:[/yellow]")
        for m in matches:
            console.print(f"  - {m.id}: {m.title[:50]}")
        raise typer.Exit(1)


def _print_raw(text: str) -> None:
    """Print machine-readable output unwrapped and without markup."""
    console.print(text, soft_wrap=True, markup=False, highlight=False)


def _require_item(svc: TaskService, partial_id: str) -> Task:
    item = _find_item_by_partial_id(svc, partial_id)
    if not item:
        console.print(f"[red]Error:[/red] Task not found: {partial_id}")
        raise typer.Exit(1)
    return item


def _print_report(report: CompletionReport) -> None:
    console.print(f"[green]✓[/green] Done: {report.task.title}")
    console.print(f"  [yellow]+{report.reward} XP[/yellow]")
    if report.hp_recovered:
        console.print(f"  [red]+{report.hp_recovered} HP[/red]")
    if report.mp_recovered:
        console.print(f"  [blue]+{report.mp_recovered} MP[/blue]")
    if report.project_bonus:
        console.print(f"  [magenta]+{report.project_bonus} XP project bonus[/magenta]")
    if report.speed_bonus:
        console.print(f"  [cyan]+{report.speed_bonus} XP speed bonus[/cyan]")
    if report.int_exp:
        console.print(f"  +{report.int_exp} INT exp")
    if report.speed_exp:
        console.print(f"  +{report.speed_exp} Speed exp")
    if report.levels_gained:
        console.print("[bold yellow]Level up![/bold yellow]")

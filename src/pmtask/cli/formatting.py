"""
Rich rendering for pm CLI output.

The core returns structured results only; everything user-facing is
formatted here.
"""

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from pmtask.core.tasks.lifecycle import EntityUpdateResult, TaskUpdateResult
from pmtask.core.tasks.models import Priority, Task, TaskStatus
from pmtask.core.tasks.service import DependencyReport, EpicOverview, IdeaOverview

STATUS_COLORS = {
    TaskStatus.PENDING: "white",
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.DONE: "green",
    TaskStatus.BLOCKED: "red",
    TaskStatus.DEFERRED: "dim",
}

PRIORITY_COLORS = {
    Priority.HIGH: "red",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "dim",
}


def print_json(console: Console, data: Any) -> None:
    """Print *data* as indented JSON, unwrapped and without markup."""
    console.print(json.dumps(data, indent=2), markup=False, highlight=False, soft_wrap=True)


def styled_status(status: TaskStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def styled_priority(priority: Priority) -> str:
    color = PRIORITY_COLORS.get(priority, "white")
    return f"[{color}]{priority.value}[/{color}]"


def task_table(tasks: list[Task]) -> Table:
    """Build a table of tasks (ID, priority, status, title)."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Priority", width=8)
    table.add_column("Status", width=12)
    table.add_column("Title", overflow="fold")

    for task in tasks:
        table.add_row(
            task.id,
            styled_priority(task.priority),
            styled_status(task.status),
            task.title,
        )
    return table


def print_update_result(console: Console, result: TaskUpdateResult) -> None:
    """Render the outcome of a task update."""
    task = result.task
    if not result.changed:
        console.print(f"[yellow]No changes made to task {task.id}[/yellow]")
        return

    console.print(f"[green]Updated:[/green] {task.id} - {task.title}")
    console.print(
        f"[dim]Epic:[/dim] {result.context.epic_title} "
        f"[dim]· Idea:[/dim] {result.context.idea_title}"
    )
    for entry in result.change_log.entries:
        console.print(f"  • {entry}")

    if task.status != result.old_status and task.status == TaskStatus.DONE:
        console.print("\n[green]Task completed.[/green] Run `pm task next` for the next task.")


def print_entity_update_result(console: Console, result: EntityUpdateResult) -> None:
    """Render the outcome of an idea or epic update."""
    entity = result.entity
    if not result.changed:
        console.print(f"[yellow]No changes made to {result.entity_type} {entity.id}[/yellow]")
        return

    console.print(f"[green]Updated:[/green] {entity.id} - {entity.title}")
    if "ideaTitle" in result.context:
        console.print(f"[dim]Idea:[/dim] {result.context['ideaTitle']}")
    for entry in result.change_log.entries:
        console.print(f"  • {entry}")


def print_task_detail(console: Console, task: Task) -> None:
    """Render one task with its dependencies and progress history."""
    console.print(f"[bold cyan]{task.id}[/bold cyan] - {task.title}")
    console.print(f"[dim]Status:[/dim] {styled_status(task.status)}")
    console.print(f"[dim]Type:[/dim] {task.type.value}")
    console.print(f"[dim]Priority:[/dim] {styled_priority(task.priority)}")
    console.print(f"[dim]Epic:[/dim] {task.epic_id}")

    if task.dependencies:
        console.print(f"[dim]Depends on:[/dim] {', '.join(task.dependencies)}")

    if task.created_at:
        console.print(f"[dim]Created:[/dim] {task.created_at.isoformat()}")
    if task.updated_at:
        console.print(f"[dim]Updated:[/dim] {task.updated_at.isoformat()}")

    if task.description:
        console.print(f"\n[bold]Description:[/bold]\n{task.description}")

    if task.progress_notes:
        console.print("\n[bold]Progress:[/bold]")
        for note in task.progress_notes:
            stamp = note.timestamp.strftime("%Y-%m-%d %H:%M")
            console.print(f"  [dim]{stamp}[/dim] ({note.type.value}) {note.content}")


def print_dependency_report(console: Console, report: DependencyReport) -> None:
    """Render a task's dependencies and whether it can start."""
    task = report.task
    console.print(f"[bold cyan]{task.id}[/bold cyan] - {task.title}")
    if report.unblocks:
        console.print(f"[dim]Unblocks:[/dim] {', '.join(report.unblocks)}")

    if not task.dependencies:
        console.print("[dim]No dependencies.[/dim]")
        return

    console.print(task_table(report.dependencies))
    for dep_id in report.missing:
        console.print(f"[red]Missing:[/red] {dep_id}")

    console.print(
        f"\n[dim]{report.completed}/{report.total} done · "
        f"{report.in_progress} in progress · {report.blocked} blocked · "
        f"{report.pending} pending[/dim]"
    )
    if report.can_start:
        console.print("[green]Ready to start.[/green]")
    else:
        console.print("[yellow]Waiting on dependencies.[/yellow]")


def print_idea_overview(console: Console, overview: IdeaOverview) -> None:
    """Render an idea with per-epic task tables and a progress line."""
    idea = overview.idea
    stats = overview.stats
    console.print(f"[bold cyan]{idea.id}[/bold cyan] - {idea.title}")
    console.print(f"[dim]Status:[/dim] {styled_status(idea.status)}")
    if idea.description:
        console.print(idea.description)

    for epic in overview.epics:
        tasks = overview.tasks_for(epic)
        console.print(f"\n[bold]{epic.id}[/bold] - {epic.title} ({len(tasks)} tasks)")
        if tasks:
            console.print(task_table(tasks))

    console.print(
        f"\n[dim]Progress:[/dim] {stats.completed_tasks}/{stats.total_tasks} tasks done "
        f"({stats.progress_percent}%) across {stats.total_epics} epics"
    )


def print_epic_overview(console: Console, overview: EpicOverview) -> None:
    """Render an epic with its tasks and a progress line."""
    epic = overview.epic
    stats = overview.stats
    console.print(f"[bold cyan]{epic.id}[/bold cyan] - {epic.title}")
    console.print(f"[dim]Idea:[/dim] {overview.idea_title or epic.idea_id}")
    console.print(f"[dim]Status:[/dim] {styled_status(epic.status)}")
    if epic.description:
        console.print(epic.description)

    if overview.tasks:
        console.print(task_table(overview.tasks))
    console.print(
        f"\n[dim]Progress:[/dim] {stats.completed_tasks}/{stats.total_tasks} tasks done "
        f"({stats.progress_percent}%)"
    )


def idea_table(overviews: list[IdeaOverview]) -> Table:
    """Build a table of ideas with epic counts and task progress."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Priority", width=8)
    table.add_column("Status", width=12)
    table.add_column("Title", overflow="fold")
    table.add_column("Epics", justify="right")
    table.add_column("Progress", justify="right")

    for overview in overviews:
        idea = overview.idea
        stats = overview.stats
        table.add_row(
            idea.id,
            styled_priority(idea.priority),
            styled_status(idea.status),
            idea.title,
            str(stats.total_epics),
            f"{stats.completed_tasks}/{stats.total_tasks} ({stats.progress_percent}%)",
        )
    return table


def epic_table(overviews: list[EpicOverview]) -> Table:
    """Build a table of epics with their parent idea and task progress."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Priority", width=8)
    table.add_column("Status", width=12)
    table.add_column("Title", overflow="fold")
    table.add_column("Idea", overflow="fold")
    table.add_column("Progress", justify="right")

    for overview in overviews:
        epic = overview.epic
        stats = overview.stats
        table.add_row(
            epic.id,
            styled_priority(epic.priority),
            styled_status(epic.status),
            epic.title,
            overview.idea_title or epic.idea_id,
            f"{stats.completed_tasks}/{stats.total_tasks} ({stats.progress_percent}%)",
        )
    return table

"""
pm CLI - Task commands.

Every command goes through TaskService, so the CLI applies the same
validation, approval gate and lifecycle rules as an agent tool call.
"""

from typing import Any

import typer
from rich.console import Console

from pmtask.cli.errors import ExitCode, fail, print_error, print_invalid_option_error
from pmtask.cli.formatting import (
    print_dependency_report,
    print_json,
    print_task_detail,
    print_update_result,
    task_table,
)
from pmtask.core.tasks.exceptions import PmError
from pmtask.core.tasks.models import Priority, TaskStatus
from pmtask.core.tasks.service import get_service

console = Console()
app = typer.Typer(help="Manage tasks")


def _parse_option(value: str | None, enum_cls: type[TaskStatus] | type[Priority]) -> Any:
    if value is None:
        return None
    try:
        return enum_cls(value.lower())
    except ValueError:
        print_invalid_option_error(value, [m.value for m in enum_cls])
        raise typer.Exit(ExitCode.USER_ERROR)


@app.command()
def update(
    task_id: str = typer.Argument(..., help="Task ID to update"),
    status: str | None = typer.Option(
        None,
        "--status",
        "-s",
        help="New status: pending, in-progress, done, blocked, deferred",
    ),
    priority: str | None = typer.Option(
        None,
        "--priority",
        "-p",
        help="New priority: low, medium, high",
    ),
    title: str | None = typer.Option(
        None,
        "--title",
        help="New title",
    ),
    description: str | None = typer.Option(
        None,
        "--description",
        "-d",
        help="New description (use \"\" to clear)",
    ),
    depends_on: list[str] | None = typer.Option(
        None,
        "--depends-on",
        help="Replacement dependency set (can be repeated)",
    ),
    clear_deps: bool = typer.Option(
        False,
        "--clear-deps",
        help="Remove all dependencies",
    ),
    note: str | None = typer.Option(
        None,
        "--note",
        "-n",
        help="Append a progress note",
    ),
    note_type: str | None = typer.Option(
        None,
        "--note-type",
        help="Progress note type: update, comment, blocker, completion",
    ),
    approve: bool = typer.Option(
        False,
        "--approve",
        help="Confirm the user approved this change",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the update summary as JSON",
    ),
) -> None:
    """
    Update a task's fields and/or append a progress note.

    Only the options you pass are changed. Starting work (``--status
    in-progress`` with at most a note) needs no approval; every other change
    needs --approve.

    Examples:
        pm task update TSK-9 --status in-progress --note "Starting work"
        pm task update TSK-9 --priority high --approve
        pm task update TSK-9 --depends-on TSK-1 --depends-on TSK-2 --approve
        pm task update TSK-9 --clear-deps --approve
    """
    if depends_on and clear_deps:
        print_error(
            "Cannot use --depends-on with --clear-deps",
            solution="Remove one of the flags: --depends-on or --clear-deps",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    args: dict[str, Any] = {"taskId": task_id}
    if status is not None:
        args["status"] = status
    if priority is not None:
        args["priority"] = priority
    if title is not None:
        args["title"] = title
    if description is not None:
        args["description"] = description
    if depends_on:
        args["dependencies"] = list(depends_on)
    elif clear_deps:
        args["dependencies"] = []
    if note is not None:
        args["progressNote"] = note
    if note_type is not None:
        args["progressType"] = note_type
    if approve:
        args["_approval_confirmed"] = True

    service = get_service()
    try:
        result = service.update_task(args)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, result.summary())
        return
    print_update_result(console, result)


@app.command()
def show(
    task_id: str = typer.Argument(..., help="Task ID to display"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Show detailed information about a task.

    Examples:
        pm task show TSK-9
        pm task show TSK-9 --json
    """
    service = get_service()
    try:
        task = service.get_task(task_id)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, task.model_dump(mode="json", by_alias=True))
        return
    print_task_detail(console, task)


@app.command()
def create(
    epic_id: str = typer.Argument(..., help="Epic the task belongs to"),
    title: str = typer.Argument(..., help="Task title"),
    task_type: str = typer.Option(
        "task",
        "--type",
        "-t",
        help="Task type: task, bug, rnd",
    ),
    priority: str = typer.Option(
        "medium",
        "--priority",
        "-p",
        help="Priority: low, medium, high",
    ),
    description: str = typer.Option(
        "",
        "--description",
        "-d",
        help="Task description",
    ),
    depends_on: list[str] | None = typer.Option(
        None,
        "--depends-on",
        help="Task IDs this task depends on (can be repeated)",
    ),
    approve: bool = typer.Option(
        False,
        "--approve",
        help="Confirm the user approved this change",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Create a new pending task under an epic.

    Examples:
        pm task create EPIC-2 "Wire up storage" --approve
        pm task create EPIC-2 "Fix crash on empty input" --type bug --priority high --approve
        pm task create EPIC-2 "Write tests" --depends-on TSK-3 --approve
    """
    service = get_service()
    try:
        task = service.create_task(
            epic_id,
            title,
            description=description,
            priority=priority,
            task_type=task_type,
            dependencies=depends_on or [],
            approval_confirmed=approve,
        )
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, task.model_dump(mode="json", by_alias=True))
        return
    console.print(f"[green]Created:[/green] {task.id} - {task.title}")
    console.print(f"  Epic: {task.epic_id}")


@app.command("list")
def list_tasks(
    status: str | None = typer.Option(
        None,
        "--status",
        "-s",
        help="Filter by status: pending, in-progress, done, blocked, deferred",
    ),
    priority: str | None = typer.Option(
        None,
        "--priority",
        "-p",
        help="Filter by priority: low, medium, high",
    ),
    epic: str | None = typer.Option(
        None,
        "--epic",
        help="Filter by epic ID",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    List tasks with optional filters.

    Examples:
        pm task list
        pm task list --status pending --priority high
        pm task list --epic EPIC-2
    """
    task_status = _parse_option(status, TaskStatus)
    task_priority = _parse_option(priority, Priority)

    service = get_service()
    try:
        tasks = service.list_tasks(status=task_status, priority=task_priority, epic_id=epic)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, [t.model_dump(mode="json", by_alias=True) for t in tasks])
        return

    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    console.print(task_table(tasks))
    console.print(f"\n[dim]Total: {len(tasks)} tasks[/dim]")


@app.command()
def deps(
    task_id: str = typer.Argument(..., help="Task ID"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Show a task's dependencies and whether it can start.

    Examples:
        pm task deps TSK-9
    """
    service = get_service()
    try:
        report = service.get_dependencies(task_id)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, report.summary())
        return
    print_dependency_report(console, report)


@app.command("next")
def next_task(
    priority: str | None = typer.Option(
        None,
        "--priority",
        "-p",
        help="Only consider tasks with this priority",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Recommend the next task to work on.

    Picks the most urgent pending task whose dependencies are all done,
    oldest first within a priority.

    Examples:
        pm task next
        pm task next --priority high
    """
    task_priority = _parse_option(priority, Priority)

    service = get_service()
    try:
        task = service.next_task(priority=task_priority)
    except PmError as e:
        fail(e)

    if task is None:
        if json_output:
            print_json(console, None)
            return
        console.print("[yellow]No tasks are ready to start[/yellow]")
        return

    if json_output:
        print_json(console, task.model_dump(mode="json", by_alias=True))
        return
    print_task_detail(console, task)
    console.print(f"\n[dim]Start with:[/dim] pm task update {task.id} --status in-progress")

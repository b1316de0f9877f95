"""
pm CLI - Epic commands.
"""

from typing import Any

import typer
from rich.console import Console

from pmtask.cli.errors import fail
from pmtask.cli.formatting import (
    epic_table,
    print_entity_update_result,
    print_epic_overview,
    print_json,
)
from pmtask.core.tasks.exceptions import PmError
from pmtask.core.tasks.service import get_service

console = Console()
app = typer.Typer(help="Manage epics")


@app.command()
def create(
    idea_id: str = typer.Argument(..., help="Idea the epic belongs to"),
    title: str = typer.Argument(..., help="Epic title"),
    description: str = typer.Option(
        "",
        "--description",
        "-d",
        help="Epic description",
    ),
    priority: str = typer.Option(
        "medium",
        "--priority",
        "-p",
        help="Priority: low, medium, high",
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
    Create a new epic under an idea.

    Examples:
        pm epic create IDEA-1 "Storage layer" --approve
    """
    service = get_service()
    try:
        epic = service.create_epic(
            idea_id,
            title,
            description=description,
            priority=priority,
            approval_confirmed=approve,
        )
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, epic.model_dump(mode="json", by_alias=True))
        return
    console.print(f"[green]Created:[/green] {epic.id} - {epic.title}")
    console.print(f"  Idea: {epic.idea_id}")


@app.command()
def show(
    epic_id: str = typer.Argument(..., help="Epic ID to display"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Show an epic with its tasks and progress.

    Examples:
        pm epic show EPIC-2
    """
    service = get_service()
    try:
        overview = service.get_epic_overview(epic_id)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(
            console,
            {
                "epic": overview.epic.model_dump(mode="json", by_alias=True),
                "ideaTitle": overview.idea_title,
                "tasks": [t.model_dump(mode="json", by_alias=True) for t in overview.tasks],
                "statistics": overview.stats.model_dump(mode="json", by_alias=True),
            },
        )
        return
    print_epic_overview(console, overview)


@app.command()
def update(
    epic_id: str = typer.Argument(..., help="Epic ID to update"),
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
    Update an epic's status, priority, title or description.

    Starting work (``--status in-progress`` alone) needs no approval; every
    other change needs --approve.

    Examples:
        pm epic update EPIC-2 --status in-progress
        pm epic update EPIC-2 --priority high --approve
    """
    args: dict[str, Any] = {"epicId": epic_id}
    if status is not None:
        args["status"] = status
    if priority is not None:
        args["priority"] = priority
    if title is not None:
        args["title"] = title
    if description is not None:
        args["description"] = description
    if approve:
        args["_approval_confirmed"] = True

    service = get_service()
    try:
        result = service.update_epic(args)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, result.summary())
        return
    print_entity_update_result(console, result)


@app.command("list")
def list_epics(
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
    idea: str | None = typer.Option(
        None,
        "--idea",
        help="Filter by idea ID",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    List epics with their parent idea and task progress.

    Examples:
        pm epic list
        pm epic list --idea IDEA-1
    """
    service = get_service()
    try:
        overviews = service.list_epics(status=status, priority=priority, idea_id=idea)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(
            console,
            [
                {
                    "epic": o.epic.model_dump(mode="json", by_alias=True),
                    "ideaTitle": o.idea_title,
                    "statistics": o.stats.model_dump(mode="json", by_alias=True),
                }
                for o in overviews
            ],
        )
        return

    if not overviews:
        console.print("[yellow]No epics found[/yellow]")
        return

    console.print(epic_table(overviews))
    console.print(f"\n[dim]Total: {len(overviews)} epics[/dim]")

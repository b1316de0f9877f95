"""
pm CLI - Idea commands.
"""

from typing import Any

import typer
from rich.console import Console

from pmtask.cli.errors import fail
from pmtask.cli.formatting import (
    idea_table,
    print_entity_update_result,
    print_idea_overview,
    print_json,
)
from pmtask.core.tasks.exceptions import PmError
from pmtask.core.tasks.service import get_service

console = Console()
app = typer.Typer(help="Manage ideas")


@app.command()
def create(
    title: str = typer.Argument(..., help="Idea title"),
    description: str = typer.Option(
        "",
        "--description",
        "-d",
        help="Idea description",
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
    Create a new idea.

    Examples:
        pm idea create "Offline mode" --approve
    """
    service = get_service()
    try:
        idea = service.create_idea(
            title,
            description=description,
            priority=priority,
            approval_confirmed=approve,
        )
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, idea.model_dump(mode="json", by_alias=True))
        return
    console.print(f"[green]Created:[/green] {idea.id} - {idea.title}")


@app.command()
def show(
    idea_id: str = typer.Argument(..., help="Idea ID to display"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Show an idea with its epics, tasks and progress.

    Examples:
        pm idea show IDEA-1
        pm idea show IDEA-1 --json
    """
    service = get_service()
    try:
        overview = service.get_idea_overview(idea_id)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(
            console,
            {
                "idea": overview.idea.model_dump(mode="json", by_alias=True),
                "epics": [e.model_dump(mode="json", by_alias=True) for e in overview.epics],
                "statistics": overview.stats.model_dump(mode="json", by_alias=True),
            },
        )
        return
    print_idea_overview(console, overview)


@app.command()
def update(
    idea_id: str = typer.Argument(..., help="Idea ID to update"),
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
    Update an idea's status, priority, title or description.

    Starting work (``--status in-progress`` alone) needs no approval; every
    other change needs --approve.

    Examples:
        pm idea update IDEA-1 --status in-progress
        pm idea update IDEA-1 --title "Offline-first mode" --approve
    """
    args: dict[str, Any] = {"ideaId": idea_id}
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
        result = service.update_idea(args)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(console, result.summary())
        return
    print_entity_update_result(console, result)


@app.command("list")
def list_ideas(
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
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    List ideas with their epic counts and task progress.

    Examples:
        pm idea list
        pm idea list --status in-progress --json
    """
    service = get_service()
    try:
        overviews = service.list_ideas(status=status, priority=priority)
    except PmError as e:
        fail(e)

    if json_output:
        print_json(
            console,
            [
                {
                    "idea": o.idea.model_dump(mode="json", by_alias=True),
                    "statistics": o.stats.model_dump(mode="json", by_alias=True),
                }
                for o in overviews
            ],
        )
        return

    if not overviews:
        console.print("[yellow]No ideas found[/yellow]")
        return

    console.print(idea_table(overviews))
    console.print(f"\n[dim]Total: {len(overviews)} ideas[/dim]")

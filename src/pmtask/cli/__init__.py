"""
pm CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from pmtask import __version__
from pmtask.cli import epic, idea, task
from pmtask.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_WORK = "Work with Tasks"
PANEL_PLAN = "Plan Ideas and Epics"

# Create the main Typer app
app = typer.Typer(
    name="pm",
    help="Task manager for AI assistants: ideas, epics and tasks",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _configure_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    pm - task manager for AI assistants.

    Ideas hold epics, epics hold tasks. Agents start work on a task freely;
    every other change needs the user's approval (--approve).

    Quick Start:
        pm idea create "Offline mode" --approve
        pm epic create IDEA-1 "Storage layer" --approve
        pm task create EPIC-2 "Wire up storage" --approve
        pm task next
        pm task update TSK-3 --status in-progress --note "Starting work"
    """
    _configure_logging(debug)

    # Precedence: OS env > project .env > user .env
    load_layered_env()

    ctx.obj = {"debug": debug}


app.add_typer(task.app, name="task", rich_help_panel=PANEL_WORK)
app.add_typer(idea.app, name="idea", rich_help_panel=PANEL_PLAN)
app.add_typer(epic.app, name="epic", rich_help_panel=PANEL_PLAN)


@app.command()
def version() -> None:
    """Show pm version and exit."""
    console.print(f"pm version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]

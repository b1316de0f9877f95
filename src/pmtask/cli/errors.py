"""
Standardized error handling and exit codes for the pm CLI.

This module provides consistent error messaging with actionable guidance
and maps the task error taxonomy onto exit codes, so every command reports
failures the same way.
"""

from enum import IntEnum
from typing import NoReturn

import typer
from rich.console import Console

from pmtask.core.tasks.exceptions import (
    ApprovalRequiredError,
    DependencyCycleError,
    DependencyNotFoundError,
    NotFoundError,
    PersistenceError,
    PmError,
    TaskValidationError,
)

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for pm CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Storage failure or other unexpected error."""

    USER_ERROR = 2
    """Invalid input, missing entity or missing approval (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Task not found: TSK-404",
        ...     solution="pm task list  # to see available tasks",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def exit_code_for(error: PmError) -> ExitCode:
    """Exit code for a task error; only storage failures are not the caller's to fix."""
    if isinstance(error, PersistenceError):
        return ExitCode.GENERAL_ERROR
    return ExitCode.USER_ERROR


def fail(error: PmError) -> NoReturn:
    """
    Print guidance for *error* and exit with its code.

    Raises:
        typer.Exit: Always
    """
    if isinstance(error, ApprovalRequiredError):
        print_error(
            error.message,
            solution="Confirm the change with the user, then re-run with --approve",
        )
    elif isinstance(error, DependencyCycleError):
        print_error(error.message, reason="Dependency cycles can never be completed")
    elif isinstance(error, TaskValidationError):
        print_error("Invalid request")
        for field_error in error.errors:
            console.print(f"  [yellow]{field_error.field}[/yellow]: {field_error.message}")
    elif isinstance(error, DependencyNotFoundError):
        print_error(error.message, solution="pm task list  # to see available tasks")
    elif isinstance(error, NotFoundError):
        print_error(
            error.message,
            reason=f"The {error.entity_type} ID may be incorrect",
            solution=f"pm {error.entity_type} list  # to see available IDs",
        )
    elif isinstance(error, PersistenceError):
        print_error(
            error.message,
            reason=f"Store file: {error.path}" if error.path else None,
            solution="Check that the data directory is writable",
        )
    else:
        print_error(error.message)
    raise typer.Exit(exit_code_for(error))


def print_invalid_option_error(option: str, valid_options: list[str]) -> None:
    """Print error when an invalid option value is provided."""
    valid_str = ", ".join(valid_options)
    print_error(
        f"Invalid option: {option}",
        reason=f"Valid options are: {valid_str}",
        solution=f"Use one of: {valid_str}",
    )


__all__ = [
    "ExitCode",
    "exit_code_for",
    "fail",
    "print_error",
    "print_invalid_option_error",
]

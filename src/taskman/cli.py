"""Command-line interface for taskman.

A single command driven by --command/-c:

    taskman -c add -d "Write report" --due-date 2025-01-31 -p high --category Work
    taskman -c list --sort-by priority
    taskman -c show -i 3
    taskman -c complete -i 3
    taskman -c delete -i 3
    taskman -c clear

All persistence logic lives in lib.TaskStore; this module only validates
input, calls one store operation and renders the result.
"""

import json
import logging
import sys
import warnings
from typing import List, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from tabulate import tabulate

from taskman.lib import TaskStore
from taskman.utils import (
    DEFAULT_CATEGORY,
    DISPLAY_CREATED_FORMAT,
    DUE_DATE_FORMAT,
    PRIORITY_STYLES,
    SORT_KEYS,
    STATUS_EMOJIS,
    STATUS_FILTERS,
    Priority,
    Task,
    ValidationError,
    get_tasks_file,
)

COMMANDS = ["add", "list", "show", "complete", "delete", "clear"]
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class TaskCommand(click.Command):
    """Click command that exits with status 1 on usage errors (click uses 2)."""

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = 1
            raise


@click.command(cls=TaskCommand, context_settings=CONTEXT_SETTINGS)
@click.option(
    "-c",
    "--command",
    type=click.Choice(COMMANDS),
    required=True,
    help="Command to run",
)
@click.option("-d", "--description", default=None, help="Task description (add)")
@click.option(
    "--due-date",
    default=None,
    metavar="YYYY-MM-DD",
    help="Due date (add)",
)
@click.option(
    "-p",
    "--priority",
    type=click.Choice(["low", "medium", "high"], case_sensitive=False),
    default="medium",
    show_default=True,
    help="Task priority (add)",
)
@click.option(
    "--category",
    default=None,
    help=f"Task category (add, default: {DEFAULT_CATEGORY}); filter by category (list)",
)
@click.option(
    "-s",
    "--sort-by",
    type=click.Choice(SORT_KEYS),
    default="id",
    show_default=True,
    help="Sort order (list)",
)
@click.option(
    "--status",
    type=click.Choice(STATUS_FILTERS),
    default="all",
    show_default=True,
    help="Filter by completion status (list)",
)
@click.option("-i", "--id", "task_id", type=int, default=None, help="Task ID (show, complete, delete)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON (list)")
@click.option(
    "-f",
    "--file",
    "file_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Tasks file (default: $TASKMAN_FILE or ./tasks.json)",
)
@click.option("-v", "--verbose", is_flag=True)
def cli(
    command: str,
    description: Optional[str],
    due_date: Optional[str],
    priority: str,
    category: Optional[str],
    sort_by: str,
    status: str,
    task_id: Optional[int],
    output_json: bool,
    file_path: Optional[str],
    verbose: bool,
):
    """Personal task tracker: add, list, show, complete, delete and clear tasks."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level)
    console = Console()

    try:
        if command == "add":
            description = validate_description(description)
        elif command in ("show", "complete", "delete"):
            task_id = validate_task_id(task_id, command)
    except ValidationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        sys.exit(1)

    store = TaskStore(get_tasks_file(file_path))
    if store.load_error:
        console.print(f"[yellow]Warning: {escape(str(store.load_error))}[/]")
        console.print("[yellow]Starting with an empty task list.[/]")

    if command == "add":
        add(console, store, description, due_date, priority, category)
    elif command == "list":
        list_(console, store, sort_by, category, status, output_json)
    elif command == "show":
        show(console, store, task_id)
    elif command == "complete":
        if store.complete(task_id):
            console.print(f"[green]Task {task_id} marked as complete.[/]")
        else:
            console.print(f"[yellow]Task with ID {task_id} not found.[/]")
    elif command == "delete":
        if store.delete(task_id):
            console.print(f"[green]Task {task_id} deleted.[/]")
        else:
            console.print(f"[yellow]Task with ID {task_id} not found.[/]")
    elif command == "clear":
        store.clear()
        console.print("[green]All tasks cleared.[/]")

    if store.last_save_error:
        console.print(f"[red]Error: {escape(str(store.last_save_error))}[/]")
        console.print("[yellow]Changes were not saved.[/]")


def validate_description(description: Optional[str]) -> str:
    """Check that a description was given and isn't blank."""
    if description is None or not description.strip():
        raise ValidationError("Description required for add command")
    return description.strip()


def validate_task_id(task_id: Optional[int], command: str) -> int:
    """Check that a positive task id was given."""
    if task_id is None or task_id <= 0:
        raise ValidationError(f"Valid ID required for {command} command")
    return task_id


def add(
    console: Console,
    store: TaskStore,
    description: str,
    due_date: Optional[str],
    priority: str,
    category: Optional[str],
) -> None:
    """Add a task and report the assigned id."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        new_id = store.add(
            description,
            due_date=due_date,
            priority=Priority.from_name(priority),
            category=category or DEFAULT_CATEGORY,
        )
    for w in caught:
        console.print(f"[yellow]Warning: {escape(str(w.message))}[/]")
    console.print(f"[green]Task added with ID {new_id}[/]")


def task_row(task: Task) -> List[str]:
    """Build one display row for the list table."""
    if task.completed:
        emoji = STATUS_EMOJIS["done"]
    elif task.is_overdue:
        emoji = STATUS_EMOJIS["overdue"]
    else:
        emoji = STATUS_EMOJIS["pending"]
    return [
        emoji,
        str(task.id),
        task.description,
        task.status,
        task.priority.label,
        task.category,
        task.created_at.strftime(DISPLAY_CREATED_FORMAT),
        task.due_date.strftime(DUE_DATE_FORMAT) if task.due_date else "None",
    ]


def list_(
    console: Console,
    store: TaskStore,
    sort_by: str,
    category: Optional[str],
    status: str,
    output_json: bool,
) -> None:
    """List tasks in a table format."""
    tasks = store.list_tasks(sort_by=sort_by, category=category, status=status)

    if output_json:
        print(json.dumps([t.to_dict() for t in tasks], indent=2))
        return

    if not tasks:
        console.print("No tasks found.")
        return

    headers = ["", "ID", "Description", "Status", "Priority", "Category", "Created At", "Due Date"]
    console.out(
        "\n"
        + tabulate(
            [task_row(t) for t in tasks],
            headers=headers,
            tablefmt="simple",
            maxcolwidths=[2, None, 40, None, None, 20, None, None],
        ),
        highlight=False,
    )

    counts = store.counts(tasks)
    summary = [f"{counts['done']} done", f"{counts['pending']} pending"]
    if counts["overdue"]:
        summary.append(f"{counts['overdue']} overdue")
    console.print(f"\nTotal: {counts['total']} tasks ({', '.join(summary)})", highlight=False)


def show(console: Console, store: TaskStore, task_id: int) -> None:
    """Show detailed information about a task."""
    task = store.get(task_id)
    if task is None:
        console.print(f"[yellow]Task with ID {task_id} not found.[/]")
        return

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("ID", str(task.id))
    table.add_row("Description", escape(task.description))
    table.add_row("Status", task.status)
    style = PRIORITY_STYLES[task.priority.label]
    table.add_row("Priority", f"[{style}]{task.priority.label}[/]")
    table.add_row("Category", escape(task.category))
    table.add_row(
        "Created",
        f"{task.created_at.strftime(DISPLAY_CREATED_FORMAT)} ({task.created_ago})",
    )
    if task.due_date:
        due_str = task.due_date.strftime(DUE_DATE_FORMAT)
        if task.is_overdue:
            due_str += " [red](overdue)[/]"
        table.add_row("Due", due_str)
    else:
        table.add_row("Due", "None")

    console.print("\n[bold]Task:[/]")
    console.print(table)

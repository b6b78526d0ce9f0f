"""
FILE: daybook/cli/commands/tasks.py
PURPOSE: Task management commands (add, edit, done, undo, rm, mv, show, order)
"""

import json
from typing import List, Optional

import typer
from rich.markup import escape
from rich.panel import Panel

from ..main import app, console, error_console, emit, fail
from ...core import service
from ...core.constants import DEFAULT_PRIORITY, UNCATEGORIZED_ID
from ...core.exceptions import DaybookError
from ...core.models import Task
from ...formatting import CategoryFormatter, TaskFormatter, short_id


def category_ref(value: Optional[str]) -> Optional[str]:
    """
    Turn a category name, id or id prefix into a category id.

    Returns:
        None for 'uncategorized' (or no value), otherwise the category id
    """
    if value is None or value.strip().lower() == UNCATEGORIZED_ID:
        return None
    category = service.find_category_by_name(value)
    if category:
        return category.id
    return service.resolve_category_id(value)


def _set_completion(task_ref: str, completed: bool) -> Task:
    task = service.get_task(service.resolve_task_id(task_ref))
    is_recurring = service.category_is_recurring(task.category_id)
    return service.toggle_completion(task.id, completed, is_recurring)


def _print_task(task: Task, verb: str, json_output: bool, raw: bool) -> None:
    if json_output:
        emit(task.to_json())
    elif raw:
        emit(f"{verb} {task.id}: {task.title}")
    else:
        console.print(f"[green]✓ {verb} [bold]#{short_id(task.id)}[/bold]:[/green] {escape(task.title)}")


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    priority: str = typer.Option(DEFAULT_PRIORITY, "--priority", "-p", help="low, medium or high"),
    due: Optional[str] = typer.Option(None, "--due", "-d", help="Due date (YYYY-MM-DD)"),
    due_time: Optional[str] = typer.Option(None, "--time", "-t", help="Due time (HH:MM)"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category name or id"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Notes"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new task.

    Tasks without --due show up every day until completed. Tasks added to
    a daily (recurring) category are always undated.

    Example:
        daybook add "Write documentation"
        daybook add "Stretch" --category "Daily Recurring"
        daybook add "File taxes" --due 2025-06-15 --priority high
    """
    try:
        task = service.create_task(
            title=title,
            priority=priority,
            due_date=due,
            due_time=due_time,
            category_id=category_ref(category),
            notes=notes,
        )
    except DaybookError as e:
        fail(e)

    _print_task(task, "Created task", json_output, raw)


@app.command()
def edit(
    task_ref: str = typer.Argument(..., help="Task ID (or prefix)"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="low, medium or high"),
    due: Optional[str] = typer.Option(None, "--due", "-d", help="Due date (YYYY-MM-DD, 'none' to clear)"),
    due_time: Optional[str] = typer.Option(None, "--time", "-t", help="Due time (HH:MM, 'none' to clear)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Notes ('' to clear)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Update a task's title, priority, due date/time or notes.

    Example:
        daybook edit 3f2a "Updated title"
        daybook edit 3f2a --due none
    """
    fields = {}
    if title is not None:
        fields["title"] = title
    if priority is not None:
        fields["priority"] = priority
    if due is not None:
        fields["due_date"] = None if due.lower() == "none" else due
    if due_time is not None:
        fields["due_time"] = None if due_time.lower() == "none" else due_time
    if notes is not None:
        fields["notes"] = notes

    if not fields:
        fail("Nothing to update. Pass --title, --priority, --due, --time or --notes")

    try:
        task = service.update_task(service.resolve_task_id(task_ref), **fields)
    except DaybookError as e:
        fail(e)

    _print_task(task, "Updated task", json_output, raw)


@app.command()
def done(
    task_refs: str = typer.Argument(..., help="Task ID(s) to complete (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Mark one or more tasks as complete.

    Tasks in a daily category are complete for today only.

    Example:
        daybook done 3f2a
        daybook done 3f2a,91bc
    """
    _toggle_many(task_refs, True, json_output, raw)


@app.command()
def undo(
    task_refs: str = typer.Argument(..., help="Task ID(s) to reopen (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Mark one or more tasks as not complete.

    Example:
        daybook undo 3f2a
    """
    _toggle_many(task_refs, False, json_output, raw)


def _toggle_many(task_refs: str, completed: bool, json_output: bool, raw: bool) -> None:
    refs = [ref.strip() for ref in task_refs.split(",") if ref.strip()]
    updated = []
    errors = []

    for ref in refs:
        try:
            updated.append(_set_completion(ref, completed))
        except DaybookError as e:
            errors.append(f"Task {ref}: {e}")

    verb = "Completed" if completed else "Reopened"
    if json_output:
        emit(TaskFormatter.to_json_array(updated))
    elif raw:
        for task in updated:
            emit(f"{verb}: {task.title}")
    else:
        for task in updated:
            console.print(f"[green]✓[/green] {verb}: {escape(task.title)}")

    if errors:
        for error in errors:
            error_console.print(f"[red]Error:[/red] {escape(error)}")
        if not updated:
            raise typer.Exit(1)


@app.command()
def rm(
    task_refs: str = typer.Argument(..., help="Task ID(s) to delete (comma-separated)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Skip confirmation prompt"),
):
    """
    Delete one or more tasks permanently.

    Confirms before deleting multiple tasks (use -y to skip).

    Example:
        daybook rm 3f2a
        daybook rm 3f2a,91bc --yes
    """
    refs = [ref.strip() for ref in task_refs.split(",") if ref.strip()]
    targets = []
    errors = []

    for ref in refs:
        try:
            targets.append(service.get_task(service.resolve_task_id(ref)))
        except DaybookError as e:
            errors.append(f"Task {ref}: {e}")

    if not targets:
        for error in errors:
            error_console.print(f"[red]Error:[/red] {escape(error)}")
        raise typer.Exit(1)

    if not yes and len(targets) > 1:
        console.print(f"[yellow]About to delete {len(targets)} task(s)[/yellow]")
        if not typer.confirm("Continue?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    deleted = []
    for task in targets:
        try:
            service.delete_task(task.id)
            deleted.append({"id": task.id, "title": task.title})
        except DaybookError as e:
            errors.append(f"Error deleting task {task.id}: {e}")

    if json_output:
        emit(json.dumps(deleted, indent=2))
    elif raw:
        for task in deleted:
            emit(f"Deleted task {task['id']}: {task['title']}")
    else:
        for task in deleted:
            console.print(f"[red]✗[/red] Deleted task {short_id(task['id'])}: {escape(task['title'])}")

    if errors:
        for error in errors:
            error_console.print(f"[red]Error:[/red] {escape(error)}")
        if not deleted:
            raise typer.Exit(1)


@app.command()
def mv(
    task_ref: str = typer.Argument(..., help="Task ID (or prefix)"),
    category: str = typer.Argument(..., help="Category name, id, or 'uncategorized'"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Move a task to another category.

    Completion state is kept as-is.

    Example:
        daybook mv 3f2a Work
        daybook mv 3f2a uncategorized
    """
    try:
        task = service.move_task(service.resolve_task_id(task_ref), category_ref(category))
    except DaybookError as e:
        fail(e)

    _print_task(task, "Moved task", json_output, raw)


@app.command()
def show(
    task_ref: str = typer.Argument(..., help="Task ID (or prefix)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    View the stored details of a task.

    Shows the raw completed flag and completed_date, not the daily projection.

    Example:
        daybook show 3f2a
    """
    try:
        task = service.get_task(service.resolve_task_id(task_ref))
        category = service.get_category(task.category_id) if task.category_id else None
    except DaybookError as e:
        fail(e)

    if json_output:
        emit(task.to_json())
        return

    category_name = category.name if category else "Uncategorized"
    if category and not category.is_active:
        category_name = f"{category_name} (archived)"

    lines = [
        f"[bold]ID:[/bold] {task.id}",
        f"[bold]Category:[/bold] {escape(category_name)}",
        f"[bold]Priority:[/bold] {task.priority}",
        f"[bold]Due:[/bold] {task.due_date or '-'} {task.due_time or ''}",
        f"[bold]Completed:[/bold] {'yes' if task.completed else 'no'}",
    ]
    if task.completed_date:
        lines.append(f"[bold]Completed on:[/bold] {task.completed_date}")
    if task.notes:
        lines.append(f"\n{escape(task.notes)}")

    console.print(Panel("\n".join(lines), title=escape(task.title), expand=False))


@app.command()
def order(
    category: str = typer.Argument(..., help="Category name, id, or 'uncategorized'"),
    task_refs: List[str] = typer.Argument(..., help="Task IDs in the desired order"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Reorder the tasks inside one category.

    Each task is updated on its own; tasks that aren't in the category are
    reported and skipped. 'uncategorized' also covers tasks of archived
    categories.

    Example:
        daybook order Work 91bc 3f2a
    """
    try:
        category_id = category_ref(category)
        task_ids = [service.resolve_task_id(ref) for ref in task_refs]
        results = service.reorder_tasks(category_id, task_ids)
    except DaybookError as e:
        fail(e)

    if json_output:
        emit(CategoryFormatter.reorder_to_json(results))
    else:
        for result in results:
            if result.ok:
                console.print(f"[green]✓[/green] {short_id(result.id)}")
            else:
                error_console.print(f"[red]✗[/red] {short_id(result.id)}: {escape(result.error or '')}")

    if not all(r.ok for r in results):
        raise typer.Exit(1)

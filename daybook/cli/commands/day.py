"""
FILE: daybook/cli/commands/day.py
PURPOSE: Day view commands (today, day, range)
"""

import json
import logging
from datetime import date
from typing import Optional

import typer
from rich.markup import escape

from ..main import app, console, emit, fail
from ...core import day_view, service
from ...core.exceptions import AuthResolutionError, DaybookError, ValidationError
from ...formatting import TaskFormatter

logger = logging.getLogger(__name__)


def render_day(
    target: Optional[str],
    summary: bool,
    json_output: bool,
    raw: bool,
    bootstrap: bool = False,
) -> None:
    """
    Print the day view for a date (today when target is None).

    Notes:
        - bootstrap creates starter categories for a brand-new owner first;
          failures there are logged and the view is still shown
    """
    if bootstrap:
        try:
            service.ensure_bootstrap()
        except AuthResolutionError:
            pass
        except DaybookError as e:
            logger.warning("Starter categories not created: %s", e)

    try:
        view = day_view.get_day_view(target or date.today())
    except ValidationError as e:
        fail(e)

    stats = day_view.summarize_day(view)

    if json_output:
        payload = view.to_dict()
        if summary:
            payload["summary"] = json.loads(stats.to_json())
        emit(json.dumps(payload, indent=2))
        return

    if raw:
        for line in TaskFormatter.day_view_to_raw_lines(view):
            emit(line)
        if summary:
            emit(TaskFormatter.summary_line(stats))
        return

    if view.is_empty:
        console.print("[dim]Nothing to show[/dim]")
        return

    console.print(f"\n[bold cyan]{view.date}[/bold cyan]")
    for group in view.groups:
        if not group.tasks and not group.category.is_uncategorized:
            console.print(f"[dim]{escape(group.category.name)}: no tasks[/dim]")
            continue
        console.print(TaskFormatter.create_group_table(group, view.date))

    if summary:
        console.print(f"\n[dim]{TaskFormatter.summary_line(stats)}[/dim]")


@app.command()
def today(
    summary: bool = typer.Option(False, "--summary", "-s", help="Show pending/done/overdue counts"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show today's tasks grouped by category.

    Includes tasks due today, undated tasks, and overdue tasks that are
    still open. Creates the starter categories on first use.

    Example:
        daybook today
        daybook today --summary
        daybook today --json
    """
    render_day(None, summary, json_output, raw, bootstrap=True)


@app.command()
def day(
    target: str = typer.Argument(..., help="Date (YYYY-MM-DD)"),
    summary: bool = typer.Option(False, "--summary", "-s", help="Show pending/done/overdue counts"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Show the grouped task view for any date.

    Recurring categories show a task as done only if it was completed on
    that date.

    Example:
        daybook day 2025-06-01
        daybook day 2025-06-02 --raw
    """
    render_day(target, summary, json_output, raw)


@app.command("range")
def range_(
    start: str = typer.Argument(..., help="First date (YYYY-MM-DD)"),
    end: str = typer.Argument(..., help="Last date (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List tasks due between two dates, plus undated tasks.

    Example:
        daybook range 2025-06-01 2025-06-07
    """
    try:
        tasks = day_view.list_tasks_in_range(start, end)
    except ValidationError as e:
        fail(e)

    if json_output:
        emit(TaskFormatter.to_json_array(tasks))
    elif raw:
        for line in TaskFormatter.to_raw_lines(tasks):
            emit(line)
    else:
        if not tasks:
            console.print("[dim]No tasks found[/dim]")
            return
        console.print(TaskFormatter.create_table(tasks, title=f"{start} .. {end}"))
        console.print(f"\n[dim]Total: {len(tasks)} task(s)[/dim]")

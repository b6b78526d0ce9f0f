"""
FILE: daybook/formatting.py
PURPOSE: Shared formatting utilities for CLI output
EXPORTS:
  - TaskFormatter: Class for formatting tasks and day views
  - CategoryFormatter: Class for formatting categories
DEPENDENCIES:
  - rich (for table formatting)
  - json (for JSON serialization)
  - typing (type hints)
  - daybook.core.models (Task, Category, DayView, DaySummary)
NOTES:
  - Centralized formatting logic for consistency across commands
  - Completion markers reflect the projected flag in day views
"""

import json
from typing import List

from rich.markup import escape
from rich.table import Table

from .core.models import Category, CategoryGroup, DaySummary, DayView, Task, ReorderResult

PRIORITY_STYLES = {
    "high": "bold red",
    "medium": "yellow",
    "low": "dim",
}


def short_id(value: str) -> str:
    """First 8 characters of an id, enough to type on the command line."""
    return value[:8]


class TaskFormatter:
    """Centralized task display formatting."""

    @staticmethod
    def create_table(tasks: List[Task], title: str = "Tasks", day: str = "") -> Table:
        """
        Create Rich table for tasks.

        Args:
            tasks: List of tasks to display
            title: Table title
            day: Date the list is shown for; marks overdue due dates

        Returns:
            Rich Table object ready for display
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", width=8, no_wrap=True)
        table.add_column("Done", width=4)
        table.add_column("Title", style="white")
        table.add_column("Priority", width=8)
        table.add_column("Due", width=16)

        for task in tasks:
            done = "[green]✓[/green]" if task.completed else "[yellow]○[/yellow]"
            priority_style = PRIORITY_STYLES.get(task.priority, "white")

            due = task.due_date or "-"
            if task.due_time:
                due = f"{due} {task.due_time}"
            if day and task.due_date and task.due_date < day and not task.completed:
                due = f"[red]{due}[/red]"

            table.add_row(
                short_id(task.id),
                done,
                escape(task.title),
                f"[{priority_style}]{task.priority}[/{priority_style}]",
                due,
            )

        return table

    @staticmethod
    def create_group_table(group: CategoryGroup, day: str) -> Table:
        """Table for one day-view section, titled with the category."""
        category = group.category
        title = escape(category.name)
        if category.is_recurring:
            title = f"{title} [dim](daily)[/dim]"
        return TaskFormatter.create_table(group.tasks, title=title, day=day)

    @staticmethod
    def to_json_array(tasks: List[Task]) -> str:
        """Convert task list to JSON array string."""
        return json.dumps([t.to_dict() for t in tasks], indent=2)

    @staticmethod
    def to_raw_lines(tasks: List[Task]) -> List[str]:
        """
        Convert task list to plain text lines.

        Returns:
            List of formatted strings, one per task
        """
        lines = []
        for task in tasks:
            status_marker = "x" if task.completed else " "
            lines.append(f"{task.id}: [{status_marker}] {task.title}")
        return lines

    @staticmethod
    def day_view_to_raw_lines(view: DayView) -> List[str]:
        """Plain text: a header line per group followed by its tasks."""
        lines = []
        for group in view.groups:
            lines.append(f"# {group.category.name}")
            lines.extend(TaskFormatter.to_raw_lines(group.tasks))
        return lines

    @staticmethod
    def summary_line(summary: DaySummary) -> str:
        return (
            f"{summary.pending} pending, {summary.completed} done, "
            f"{summary.due_today} due today, {summary.overdue} overdue"
        )


class CategoryFormatter:
    """Category display formatting."""

    @staticmethod
    def create_table(categories: List[Category], title: str = "Categories") -> Table:
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", width=8, no_wrap=True)
        table.add_column("#", style="dim", width=3)
        table.add_column("Name", style="white")
        table.add_column("Icon", style="dim")
        table.add_column("Color")
        table.add_column("Daily", width=5)

        for category in categories:
            table.add_row(
                short_id(category.id),
                str(category.order_index),
                escape(category.name),
                escape(category.icon),
                f"[{category.color}]{category.color}[/]",
                "✓" if category.is_recurring else "",
            )

        return table

    @staticmethod
    def to_json_array(categories: List[Category]) -> str:
        return json.dumps([c.to_dict() for c in categories], indent=2)

    @staticmethod
    def to_raw_lines(categories: List[Category]) -> List[str]:
        lines = []
        for category in categories:
            marker = " (daily)" if category.is_recurring else ""
            lines.append(f"{category.id}: {category.name}{marker}")
        return lines

    @staticmethod
    def reorder_to_json(results: List[ReorderResult]) -> str:
        return json.dumps([r.to_dict() for r in results], indent=2)

"""
FILE: daybook/cli/commands/categories.py
PURPOSE: Category management commands (category ls/add/edit/archive/reorder/bootstrap)
"""

from typing import List, Optional

import typer
from rich.markup import escape

from ..main import category_app, console, error_console, emit, fail
from ...core import service
from ...core.constants import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON
from ...core.exceptions import DaybookError, ValidationError
from ...core.models import Category
from ...formatting import CategoryFormatter, short_id


def _resolve(ref: str) -> str:
    """Category name first, then full or abbreviated id."""
    category = service.find_category_by_name(ref)
    if category:
        return category.id
    return service.resolve_category_id(ref)


def _print_category(category: Category, verb: str, json_output: bool, raw: bool) -> None:
    if json_output:
        emit(category.to_json())
    elif raw:
        emit(f"{verb} {category.id}: {category.name}")
    else:
        marker = " [dim](daily)[/dim]" if category.is_recurring else ""
        console.print(
            f"[green]✓ {verb} [bold]#{short_id(category.id)}[/bold]:[/green] "
            f"{escape(category.name)}{marker}"
        )


@category_app.command("ls")
def category_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List active categories in display order.

    Example:
        daybook category ls
    """
    categories = service.list_categories()

    if json_output:
        emit(CategoryFormatter.to_json_array(categories))
    elif raw:
        for line in CategoryFormatter.to_raw_lines(categories):
            emit(line)
    else:
        if not categories:
            console.print("[dim]No categories yet. Try 'daybook category bootstrap'[/dim]")
            return
        console.print(CategoryFormatter.create_table(categories))


@category_app.command("add")
def category_add(
    name: str = typer.Argument(..., help="Category name"),
    icon: str = typer.Option(DEFAULT_CATEGORY_ICON, "--icon", "-i", help="Icon name"),
    color: str = typer.Option(DEFAULT_CATEGORY_COLOR, "--color", help="Hex color (#rgb or #rrggbb)"),
    recurring: bool = typer.Option(False, "--recurring", "--daily", help="Completion resets every day"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new category.

    New categories get position 0, so they sort after existing categories
    at position 0 until 'category reorder' assigns positions.

    Example:
        daybook category add Errands --icon cart --color "#f97316"
        daybook category add Habits --daily
    """
    try:
        category = service.create_category(name, icon=icon, color=color, is_recurring=recurring)
    except DaybookError as e:
        fail(e)

    _print_category(category, "Created category", json_output, raw)


@category_app.command("edit")
def category_edit(
    ref: str = typer.Argument(..., help="Category name or ID"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    icon: Optional[str] = typer.Option(None, "--icon", "-i", help="New icon"),
    color: Optional[str] = typer.Option(None, "--color", help="New hex color"),
    recurring: Optional[bool] = typer.Option(None, "--recurring/--no-recurring", help="Toggle daily reset"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Rename a category or change its icon, color or recurring flag.

    Switching the recurring flag doesn't touch existing tasks; they are
    read under the new rule from the next view on.

    Example:
        daybook category edit Work --name Job
        daybook category edit Habits --no-recurring
    """
    fields = {}
    if name is not None:
        fields["name"] = name
    if icon is not None:
        fields["icon"] = icon
    if color is not None:
        fields["color"] = color
    if recurring is not None:
        fields["is_recurring"] = recurring

    if not fields:
        fail("Nothing to update. Pass --name, --icon, --color or --recurring/--no-recurring")

    try:
        category = service.update_category(_resolve(ref), **fields)
    except DaybookError as e:
        fail(e)

    _print_category(category, "Updated category", json_output, raw)


@category_app.command("archive")
def category_archive(
    ref: str = typer.Argument(..., help="Category name or ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Archive a category.

    The category disappears from listings; its tasks are kept and show up
    under Uncategorized.

    Example:
        daybook category archive Errands
    """
    try:
        category_id = _resolve(ref)
        service.archive_category(category_id)
        category = service.get_category(category_id)
    except DaybookError as e:
        fail(e)

    _print_category(category, "Archived category", json_output, raw)


@category_app.command("reorder")
def category_reorder(
    refs: List[str] = typer.Argument(..., help="Category names or IDs in the desired order"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Set the display order of categories.

    Each category is updated on its own: unknown entries are reported and
    the rest still move. Exits with status 1 if anything failed.

    Example:
        daybook category reorder Work Personal "Daily Recurring"
    """
    ordered_ids = []
    for ref in refs:
        try:
            ordered_ids.append(_resolve(ref))
        except ValidationError as e:
            fail(e)
        except DaybookError:
            # Unknown refs are passed through so they get their own failed result
            ordered_ids.append(ref)

    try:
        results = service.reorder_categories(ordered_ids)
    except DaybookError as e:
        fail(e)

    if json_output:
        emit(CategoryFormatter.reorder_to_json(results))
    else:
        for result in results:
            if result.ok:
                console.print(f"[green]✓[/green] {short_id(result.id)}")
            else:
                error_console.print(f"[red]✗[/red] {escape(result.id)}: {escape(result.error or '')}")

    if not all(r.ok for r in results):
        raise typer.Exit(1)


@category_app.command("bootstrap")
def category_bootstrap(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create the starter categories if you have none.

    Does nothing when at least one active category exists.

    Example:
        daybook category bootstrap
    """
    try:
        created = service.ensure_bootstrap()
    except DaybookError as e:
        fail(e)

    if json_output:
        emit(CategoryFormatter.to_json_array(created))
    elif raw:
        for line in CategoryFormatter.to_raw_lines(created):
            emit(line)
    elif created:
        console.print(CategoryFormatter.create_table(created, title="Created categories"))
    else:
        console.print("[dim]Categories already set up; nothing to do[/dim]")

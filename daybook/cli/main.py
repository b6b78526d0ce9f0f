"""
FILE: daybook/cli/main.py
PURPOSE: Typer-based CLI for the daily task view and task/category management
EXPORTS:
  - app (Typer application)
  - category_app (category sub-command group)
  - main() (entry point)
  - version() - Show version
  - today() / day() / range_() - Day and calendar views
  - add() / edit() / done() / undo() / rm() / mv() / show() / order() - Task commands
  - category_ls() / category_add() / category_edit() / category_archive()
    / category_reorder() / category_bootstrap() - Category commands
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output)
  - logging (stdlib)
  - daybook.core.service / daybook.core.day_view (business logic)
  - daybook.core.config (owner override, log level)
NOTES:
  - All listing/mutating commands support --json and --raw flags
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
  - Running 'daybook' with no command shows today's view
"""

import logging
import sys
from typing import NoReturn, Optional

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

import typer
from rich.console import Console
from rich.markup import escape

from ..core import config

# Typer app setup
app = typer.Typer(
    name="daybook",
    help="Categorized daily task list with recurring categories",
    add_completion=False,
)

# Category sub-command group
category_app = typer.Typer(
    name="category",
    help="Category management commands",
)
app.add_typer(category_app, name="category")

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)

# Version
__version__ = "0.1.0"


def emit(text: str) -> None:
    """Print machine-readable output (JSON/raw) without markup or wrapping."""
    console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


def fail(message) -> NoReturn:
    """Print an error to stderr and exit with status 1."""
    error_console.print(f"[red]Error:[/red] {escape(str(message))}", highlight=False)
    raise typer.Exit(1)


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr; --verbose forces DEBUG."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [daybook] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("daybook").setLevel(level)


@app.callback(invoke_without_command=True)
def default_command(
    ctx: typer.Context,
    owner: Optional[str] = typer.Option(None, "--owner", help="Act as this owner (default: $DAYBOOK_OWNER or login name)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    Global options, and today's view when no command is given.
    """
    configure_logging(verbose)
    config.set_owner_override(owner)

    if ctx.invoked_subcommand is None:
        from .commands.day import render_day
        render_day(None, summary=True, json_output=False, raw=False, bootstrap=True)


# Import command modules to register commands with app
# Commands are decorated with @app.command() in their modules
from .commands import (
    # System commands
    version,
    # Day view commands
    today,
    day,
    range_,
    # Task commands
    add,
    edit,
    done,
    undo,
    rm,
    mv,
    show,
    order,
    # Category commands
    category_ls,
    category_add,
    category_edit,
    category_archive,
    category_reorder,
    category_bootstrap,
)


def main():
    """Main entry point for CLI."""
    app()


"""
FILE: daybook/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .system import (
    version,
)
from .day import (
    today,
    day,
    range_,
)
from .tasks import (
    add,
    edit,
    done,
    undo,
    rm,
    mv,
    show,
    order,
)
from .categories import (
    category_ls,
    category_add,
    category_edit,
    category_archive,
    category_reorder,
    category_bootstrap,
)

__all__ = [
    "version",
    "today",
    "day",
    "range_",
    "add",
    "edit",
    "done",
    "undo",
    "rm",
    "mv",
    "show",
    "order",
    "category_ls",
    "category_add",
    "category_edit",
    "category_archive",
    "category_reorder",
    "category_bootstrap",
]

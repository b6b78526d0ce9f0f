"""
FILE: daybook/core/service.py
PURPOSE: Business logic layer for categories, tasks and completion
EXPORTS:
  - resolve_task_id(ref, owner) -> str
  - resolve_category_id(ref, owner) -> str
  - list_categories(owner) -> List[Category]
  - get_category(category_id, owner) -> Category
  - find_category_by_name(name, owner) -> Optional[Category]
  - find_category_by_name_or_raise(name, owner) -> Category
  - create_category(name, icon, color, is_recurring, order_index, owner) -> Category
  - update_category(category_id, owner, **fields) -> Category
  - archive_category(category_id, owner) -> None
  - reorder_categories(ordered_ids, owner) -> List[ReorderResult]
  - has_any_categories(owner) -> bool
  - ensure_bootstrap(owner) -> List[Category]
  - category_is_recurring(category_id, owner) -> bool
  - toggle_completion(task_id, completed, is_recurring_category, today, owner) -> Task
  - create_task(title, priority, due_date, due_time, category_id, notes, owner) -> Task
  - get_task(task_id, owner) -> Task
  - update_task(task_id, owner, **fields) -> Task
  - delete_task(task_id, owner) -> None
  - move_task(task_id, category_id, owner) -> Task
  - reorder_tasks(category_id, ordered_task_ids, owner) -> List[ReorderResult]
DEPENDENCIES:
  - daybook.core.repository (all CRUD functions)
  - daybook.core.config (owner resolution)
  - daybook.core.day_view (date normalization)
  - daybook.core.exceptions
NOTES:
  - All functions validate input and raise descriptive errors
  - No direct database access (use repository layer)
  - Read paths degrade to empty results; write paths raise
  - toggle_completion is the only writer of completed/completed_date
  - Categories are archived, never deleted; tasks are deleted, never archived
"""

import logging
import re
from datetime import date, datetime
from typing import Iterable, List, Optional

from . import config, repository
from .constants import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    DEFAULT_PRIORITY,
    STARTER_CATEGORIES,
    TIME_FORMATS,
    UNCATEGORIZED_ID,
    VALID_PRIORITIES,
)
from .day_view import coerce_date
from .exceptions import (
    AuthResolutionError,
    CategoryNotFoundError,
    DaybookError,
    PersistenceError,
    TaskNotFoundError,
    ValidationError,
)
from .models import Category, ReorderResult, Task

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

CATEGORY_UPDATABLE = ("name", "icon", "color", "is_recurring")
TASK_UPDATABLE = ("title", "priority", "due_date", "due_time", "notes")


# --- Validation helpers ---


def _require_owner(owner: Optional[str]) -> str:
    resolved = config.resolve_owner(owner)
    if resolved is None:
        raise AuthResolutionError()
    return resolved


def _clean_name(name: str, what: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError(f"{what} cannot be empty")
    return name


def _clean_color(color: str) -> str:
    color = (color or "").strip()
    if not HEX_COLOR.match(color):
        raise ValidationError(f"Invalid color '{color}'. Expected a hex value like #6366f1")
    if len(color) == 4:
        color = "#" + "".join(ch * 2 for ch in color[1:])
    return color.lower()


def _clean_icon(icon: str) -> str:
    icon = (icon or "").strip()
    return icon or DEFAULT_CATEGORY_ICON


def _clean_priority(priority: str) -> str:
    priority = (priority or "").strip().lower()
    if priority not in VALID_PRIORITIES:
        raise ValidationError(
            f"Invalid priority '{priority}'. Must be one of: {', '.join(VALID_PRIORITIES)}"
        )
    return priority


def _clean_due_date(due_date) -> Optional[str]:
    if due_date is None or (isinstance(due_date, str) and not due_date.strip()):
        return None
    return coerce_date(due_date)


def _clean_due_time(due_time: Optional[str]) -> Optional[str]:
    if due_time is None or not due_time.strip():
        return None
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(due_time.strip(), fmt).strftime(fmt)
        except ValueError:
            continue
    raise ValidationError(f"Invalid time '{due_time}'. Expected HH:MM or HH:MM:SS")


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    notes = notes.strip() if notes else None
    return notes or None


def _normalize_category_id(category_id: Optional[str]) -> Optional[str]:
    """Map the synthetic bucket id (and blanks) to a NULL category."""
    if category_id is None:
        return None
    category_id = category_id.strip()
    if not category_id or category_id == UNCATEGORIZED_ID:
        return None
    return category_id


def _require_active_category(category_id: str, owner: str) -> Category:
    category = repository.get_category(category_id, owner)
    if not category:
        raise CategoryNotFoundError(category_id)
    if not category.is_active:
        raise ValidationError(f"Category '{category.name}' is archived")
    return category


def _resolve_id(table: str, ref: str, owner: Optional[str], not_found) -> str:
    ref = (ref or "").strip().lower()
    if not ref:
        raise ValidationError("An id is required")
    owner = _require_owner(owner)

    matches = repository.find_ids_by_prefix(table, owner, ref)
    if ref in matches:
        return ref
    if not matches:
        raise not_found(ref)
    if len(matches) > 1:
        raise ValidationError(f"Id prefix '{ref}' is ambiguous ({len(matches)} matches)")
    return matches[0]


def resolve_task_id(ref: str, owner: Optional[str] = None) -> str:
    """
    Expand a full or abbreviated task id.

    Raises:
        TaskNotFoundError: If nothing matches
        ValidationError: If the prefix matches more than one task
    """
    return _resolve_id("tasks", ref, owner, TaskNotFoundError)


def resolve_category_id(ref: str, owner: Optional[str] = None) -> str:
    """Expand a full or abbreviated category id (active or archived)."""
    return _resolve_id("categories", ref, owner, CategoryNotFoundError)


# --- Category Lifecycle ---


def list_categories(owner: Optional[str] = None) -> List[Category]:
    """
    List active categories.

    Returns:
        Active categories ordered by order_index; empty list when the owner
        can't be resolved or the store read fails
    """
    owner = config.resolve_owner(owner)
    if owner is None:
        return []

    try:
        return repository.list_active_categories(owner)
    except PersistenceError as e:
        logger.error("Category listing degraded to empty: %s", e)
        return []


def get_category(category_id: str, owner: Optional[str] = None) -> Category:
    """
    Get a single category (active or archived).

    Raises:
        CategoryNotFoundError: If category_id doesn't exist
        AuthResolutionError: If no owner can be resolved
    """
    owner = _require_owner(owner)
    category = repository.get_category(category_id, owner)
    if not category:
        raise CategoryNotFoundError(category_id)
    return category


def find_category_by_name(name: str, owner: Optional[str] = None) -> Optional[Category]:
    """
    Find an active category by name (case-insensitive).

    Returns:
        Category object if found, None otherwise
    """
    categories = list_categories(owner)
    return next((c for c in categories if c.name.lower() == name.strip().lower()), None)


def find_category_by_name_or_raise(name: str, owner: Optional[str] = None) -> Category:
    """
    Find an active category by name (case-insensitive), raising error if not found.

    Raises:
        ValidationError: If category not found (with helpful message)
    """
    category = find_category_by_name(name, owner)
    if not category:
        available = ", ".join([c.name for c in list_categories(owner)])
        raise ValidationError(
            f"Category '{name}' not found. Available categories: {available}"
        )
    return category


def create_category(
    name: str,
    icon: str = DEFAULT_CATEGORY_ICON,
    color: str = DEFAULT_CATEGORY_COLOR,
    is_recurring: bool = False,
    order_index: int = 0,
    owner: Optional[str] = None,
) -> Category:
    """
    Create a new active category with validation.

    Args:
        name: Category name (required, must not be empty)
        icon: Icon name (defaults to 'folder')
        color: Hex color (defaults to '#6366f1')
        is_recurring: Whether task completion resets every day
        order_index: Display position; reorder_categories() assigns real positions

    Raises:
        ValidationError: If name is empty or color is malformed
        AuthResolutionError: If no owner can be resolved
        PersistenceError: If the store write fails
    """
    name = _clean_name(name, "Category name")
    color = _clean_color(color)
    icon = _clean_icon(icon)
    owner = _require_owner(owner)

    category = repository.create_category(
        owner=owner,
        name=name,
        icon=icon,
        color=color,
        is_recurring=bool(is_recurring),
        order_index=order_index,
    )
    logger.info("Created category %s (%s) for %s", category.id, category.name, owner)
    return category


def update_category(category_id: str, owner: Optional[str] = None, **fields) -> Category:
    """
    Patch a category's name, icon, color or recurring flag.

    Raises:
        ValidationError: On unknown fields or invalid values
        CategoryNotFoundError: If category_id doesn't exist

    Notes:
        - Tasks are not touched; the next day view reinterprets them under
          the new recurring flag
    """
    unknown = set(fields) - set(CATEGORY_UPDATABLE)
    if unknown:
        raise ValidationError(
            f"Cannot update {', '.join(sorted(unknown))}. "
            f"Updatable fields: {', '.join(CATEGORY_UPDATABLE)}"
        )

    changes = {}
    if "name" in fields:
        changes["name"] = _clean_name(fields["name"], "Category name")
    if "icon" in fields:
        changes["icon"] = _clean_icon(fields["icon"])
    if "color" in fields:
        changes["color"] = _clean_color(fields["color"])
    if "is_recurring" in fields:
        changes["is_recurring"] = bool(fields["is_recurring"])

    owner = _require_owner(owner)
    category = repository.update_category(category_id, owner, changes)
    logger.info("Updated category %s: %s", category_id, sorted(changes))
    return category


def archive_category(category_id: str, owner: Optional[str] = None) -> None:
    """
    Archive a category (soft-delete).

    Raises:
        CategoryNotFoundError: If category_id doesn't exist

    Notes:
        - Idempotent: archiving an archived category succeeds
        - The category row and its tasks are kept
    """
    owner = _require_owner(owner)
    repository.archive_category(category_id, owner)
    logger.info("Archived category %s", category_id)


def reorder_categories(
    ordered_ids: Iterable[str], owner: Optional[str] = None
) -> List[ReorderResult]:
    """
    Assign order_index = position to each category id (best-effort batch).

    Returns:
        One ReorderResult per id, in input order

    Notes:
        - Each update is committed on its own; a failure doesn't stop the
          remaining ids and nothing is rolled back
        - A view read after a partial failure may show a mixed order
    """
    owner = _require_owner(owner)

    results = []
    for position, category_id in enumerate(ordered_ids):
        try:
            repository.set_category_order(category_id, owner, position)
            results.append(ReorderResult(id=category_id, ok=True))
        except DaybookError as e:
            results.append(ReorderResult(id=category_id, ok=False, error=str(e)))

    failed = [r.id for r in results if not r.ok]
    if failed:
        logger.warning("Category reorder partially failed for %s", failed)
    return results


def has_any_categories(owner: Optional[str] = None) -> bool:
    """True when the owner has at least one active category."""
    owner = config.resolve_owner(owner)
    if owner is None:
        return False

    try:
        return repository.count_active_categories(owner) > 0
    except PersistenceError as e:
        logger.error("Category check failed: %s", e)
        return False


def ensure_bootstrap(owner: Optional[str] = None) -> List[Category]:
    """
    Create the starter categories for an owner with no active categories.

    Returns:
        Categories created by this call (empty when nothing was needed)

    Notes:
        - Safe to call repeatedly: gated on the active-category count, and
          each starter is skipped if a category of that name already exists
        - No transaction spans the check and the inserts, so two concurrent
          first runs can race
    """
    owner = _require_owner(owner)
    if repository.count_active_categories(owner) > 0:
        return []

    created = []
    for position, (name, icon, color, is_recurring) in enumerate(STARTER_CATEGORIES):
        if repository.find_category_by_name(owner, name):
            continue
        created.append(
            repository.create_category(
                owner=owner,
                name=name,
                icon=icon,
                color=color,
                is_recurring=is_recurring,
                order_index=position,
            )
        )

    if created:
        logger.info("Bootstrapped %d starter categories for %s", len(created), owner)
    return created


def category_is_recurring(category_id: Optional[str], owner: Optional[str] = None) -> bool:
    """
    Whether a task in this category should use recurring completion.

    Notes:
        - Callers use this to work out the is_recurring_category argument of
          toggle_completion(); archived or missing categories count as
          non-recurring, matching how the day view treats them
    """
    category_id = _normalize_category_id(category_id)
    if category_id is None:
        return False
    owner = _require_owner(owner)
    category = repository.get_category(category_id, owner)
    return bool(category and category.is_active and category.is_recurring)


# --- Completion ---


def toggle_completion(
    task_id: str,
    completed: bool,
    is_recurring_category: bool,
    today: Optional[date] = None,
    owner: Optional[str] = None,
) -> Task:
    """
    Set a task's completion with category-aware bookkeeping.

    Args:
        task_id: Task to update
        completed: New raw completed flag
        is_recurring_category: Caller-determined; the task's category is not
            looked up here
        today: Date recorded as completed_date (defaults to today)

    Returns:
        Updated stored Task

    Raises:
        TaskNotFoundError: If task_id doesn't exist
        PersistenceError: If the store write fails (not retried)

    Notes:
        - Recurring: completed_date = today when completing, NULL when not
        - Non-recurring: completed_date is left untouched
        - Single-row update; repeating the same call yields the same state
    """
    owner = _require_owner(owner)
    completed = bool(completed)

    changes = {"completed": completed}
    if is_recurring_category:
        day = coerce_date(today or date.today())
        changes["completed_date"] = day if completed else None

    task = repository.update_task(task_id, owner, changes)
    logger.info(
        "Task %s completed=%s (recurring=%s)", task_id, completed, bool(is_recurring_category)
    )
    return task


# --- Task Mutation ---


def create_task(
    title: str,
    priority: str = DEFAULT_PRIORITY,
    due_date=None,
    due_time: Optional[str] = None,
    category_id: Optional[str] = None,
    notes: Optional[str] = None,
    owner: Optional[str] = None,
) -> Task:
    """
    Create a new task with validation.

    Args:
        title: Task title (required, must not be empty)
        priority: low, medium or high
        due_date: date or YYYY-MM-DD, None for an undated task
        due_time: HH:MM or HH:MM:SS
        category_id: Target category; None or 'uncategorized' for none
        notes: Optional free text

    Raises:
        ValidationError: On invalid input or an archived category
        CategoryNotFoundError: If category_id doesn't exist

    Notes:
        - Task starts incomplete with completed_date NULL
        - Tasks in a recurring category are stored undated so they show
          up every day
    """
    title = _clean_name(title, "Task title")
    priority = _clean_priority(priority)
    due_date = _clean_due_date(due_date)
    due_time = _clean_due_time(due_time)
    notes = _clean_notes(notes)
    category_id = _normalize_category_id(category_id)
    owner = _require_owner(owner)

    if category_id is not None:
        category = _require_active_category(category_id, owner)
        if category.is_recurring:
            due_date = None

    task = repository.create_task(
        owner=owner,
        title=title,
        priority=priority,
        due_date=due_date,
        due_time=due_time,
        category_id=category_id,
        notes=notes,
    )
    logger.info("Created task %s (%s)", task.id, task.title)
    return task


def get_task(task_id: str, owner: Optional[str] = None) -> Task:
    """
    Get a single stored task.

    Raises:
        TaskNotFoundError: If task_id doesn't exist
    """
    owner = _require_owner(owner)
    task = repository.get_task(task_id, owner)
    if not task:
        raise TaskNotFoundError(task_id)
    return task


def update_task(task_id: str, owner: Optional[str] = None, **fields) -> Task:
    """
    Patch a task's title, priority, due date/time or notes.

    Raises:
        ValidationError: On invalid values, on completed/completed_date
            (use toggle_completion) or category_id (use move_task)
        TaskNotFoundError: If task_id doesn't exist
    """
    if "completed" in fields or "completed_date" in fields:
        raise ValidationError("Completion can't be edited directly; use toggle_completion")
    if "category_id" in fields:
        raise ValidationError("Category can't be edited directly; use move_task")
    unknown = set(fields) - set(TASK_UPDATABLE)
    if unknown:
        raise ValidationError(
            f"Cannot update {', '.join(sorted(unknown))}. "
            f"Updatable fields: {', '.join(TASK_UPDATABLE)}"
        )

    changes = {}
    if "title" in fields:
        changes["title"] = _clean_name(fields["title"], "Task title")
    if "priority" in fields:
        changes["priority"] = _clean_priority(fields["priority"])
    if "due_date" in fields:
        changes["due_date"] = _clean_due_date(fields["due_date"])
    if "due_time" in fields:
        changes["due_time"] = _clean_due_time(fields["due_time"])
    if "notes" in fields:
        changes["notes"] = _clean_notes(fields["notes"])

    owner = _require_owner(owner)
    task = repository.update_task(task_id, owner, changes)
    logger.info("Updated task %s: %s", task_id, sorted(changes))
    return task


def delete_task(task_id: str, owner: Optional[str] = None) -> None:
    """
    Delete task permanently.

    Raises:
        TaskNotFoundError: If task_id doesn't exist
    """
    owner = _require_owner(owner)
    repository.delete_task(task_id, owner)
    logger.info("Deleted task %s", task_id)


def move_task(task_id: str, category_id: Optional[str], owner: Optional[str] = None) -> Task:
    """
    Move a task to another category (or to uncategorized).

    Args:
        category_id: Target category; None or 'uncategorized' for none

    Raises:
        TaskNotFoundError: If task_id doesn't exist
        CategoryNotFoundError: If category_id doesn't exist
        ValidationError: If the target category is archived

    Notes:
        - completed and completed_date are kept as-is; the next day view
          reads them under the new category's rules
    """
    category_id = _normalize_category_id(category_id)
    owner = _require_owner(owner)

    if category_id is not None:
        _require_active_category(category_id, owner)

    task = repository.update_task(task_id, owner, {"category_id": category_id})
    logger.info("Moved task %s to %s", task_id, category_id or UNCATEGORIZED_ID)
    return task


def reorder_tasks(
    category_id: Optional[str],
    ordered_task_ids: Iterable[str],
    owner: Optional[str] = None,
) -> List[ReorderResult]:
    """
    Assign order_index = position to tasks inside one category (best-effort).

    Args:
        category_id: Category whose tasks are reordered; None or
            'uncategorized' for the uncategorized bucket (including tasks
            of archived categories)
        ordered_task_ids: Task ids in the desired order

    Returns:
        One ReorderResult per id; ids that aren't in the category fail
    """
    category_id = _normalize_category_id(category_id)
    owner = _require_owner(owner)

    results = []
    for position, task_id in enumerate(ordered_task_ids):
        try:
            repository.set_task_order(task_id, owner, category_id, position)
            results.append(ReorderResult(id=task_id, ok=True))
        except DaybookError as e:
            results.append(ReorderResult(id=task_id, ok=False, error=str(e)))

    failed = [r.id for r in results if not r.ok]
    if failed:
        logger.warning("Task reorder partially failed for %s", failed)
    return results

"""
FILE: daybook/core/day_view.py
PURPOSE: Day view aggregation: eligibility, recurring projection, grouping
EXPORTS:
  - coerce_date(value) -> str
  - project_completion(task, category, date) -> bool
  - project_task(task, category, date) -> Task
  - build_day_view(categories, tasks, date, owner) -> DayView
  - get_day_view(target_date, owner) -> DayView
  - summarize_day(day_view) -> DaySummary
  - list_tasks_for_date(target_date, owner) -> List[Task]
  - list_tasks_in_range(start, end, owner) -> List[Task]
DEPENDENCIES:
  - daybook.core.repository (filtered reads)
  - daybook.core.models (Category, Task, CategoryGroup, DayView, DaySummary)
  - daybook.core.config (owner resolution)
NOTES:
  - Read path: unresolved owner or store failure degrades to an empty result
  - Recurring categories never duplicate rows; only the displayed completed
    flag differs, derived from completed_date == target date
  - Projection never writes back to the store
  - The uncategorized bucket is always the last group, even when empty
"""

import dataclasses
import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union

from . import config, repository
from .constants import DATE_FORMAT
from .exceptions import PersistenceError, ValidationError
from .models import (
    Category,
    CategoryGroup,
    DaySummary,
    DayView,
    Task,
    uncategorized_category,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def coerce_date(value: DateLike) -> str:
    """
    Normalize a date argument to a YYYY-MM-DD string.

    Raises:
        ValidationError: If a string isn't a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), DATE_FORMAT).date().isoformat()
        except ValueError:
            raise ValidationError(f"Invalid date '{value}'. Expected YYYY-MM-DD")
    raise ValidationError(f"Invalid date {value!r}. Expected YYYY-MM-DD")


def project_completion(task: Task, category: Optional[Category], target_date: str) -> bool:
    """
    Effective completion of a task on a given date.

    Recurring category: completed only if it was completed on that date.
    Anything else (non-recurring, uncategorized, no category): raw flag.
    """
    if category is not None and category.is_recurring:
        return task.completed_date == target_date
    return task.completed


def project_task(task: Task, category: Optional[Category], target_date: str) -> Task:
    """Copy of the task with its completed flag projected for the date."""
    projected = project_completion(task, category, target_date)
    if projected == task.completed:
        return task
    return dataclasses.replace(task, completed=projected)


def build_day_view(
    categories: Iterable[Category],
    tasks: Iterable[Task],
    target_date: str,
    owner: str,
) -> DayView:
    """
    Group eligible tasks under their categories and project completion.

    Args:
        categories: Active categories in display order
        tasks: Eligible tasks (already filtered for the date)
        target_date: YYYY-MM-DD
        owner: Owner of the synthetic uncategorized bucket

    Notes:
        - Categories keep the order they were given in
        - Tasks whose category is not among the given categories (e.g. it
          was archived) are shown in the uncategorized bucket; their stored
          category_id is left alone
    """
    categories = list(categories)
    by_id: Dict[str, Category] = {c.id: c for c in categories}
    groups: Dict[str, CategoryGroup] = {
        c.id: CategoryGroup(category=c) for c in categories
    }
    bucket = CategoryGroup(category=uncategorized_category(owner))

    for task in tasks:
        category = by_id.get(task.category_id) if task.category_id else None
        projected = project_task(task, category, target_date)
        if category is None:
            bucket.tasks.append(projected)
        else:
            groups[category.id].tasks.append(projected)

    ordered = [groups[c.id] for c in categories]
    ordered.append(bucket)
    return DayView(date=target_date, groups=ordered)


def get_day_view(target_date: DateLike, owner: Optional[str] = None) -> DayView:
    """
    Build the categorized, date-projected view for a single day.

    Args:
        target_date: date or YYYY-MM-DD string
        owner: Owner identity (resolved from config when omitted)

    Returns:
        DayView with one group per active category plus the uncategorized
        bucket; an empty DayView if the owner can't be resolved or the
        store read fails

    Raises:
        ValidationError: If target_date is malformed
    """
    day = coerce_date(target_date)
    owner = config.resolve_owner(owner)
    if owner is None:
        logger.warning("No owner resolved; returning empty day view for %s", day)
        return DayView(date=day)

    try:
        categories = repository.list_active_categories(owner)
        tasks = repository.list_tasks_for_day(owner, day)
    except PersistenceError as e:
        logger.error("Day view for %s degraded to empty: %s", day, e)
        return DayView(date=day)

    view = build_day_view(categories, tasks, day, owner)
    logger.debug(
        "Day view %s for %s: %d categories, %d tasks",
        day, owner, len(categories), len(tasks),
    )
    return view


def summarize_day(day_view: DayView) -> DaySummary:
    """Counts of pending, completed, due-today and overdue tasks in a view."""
    summary = DaySummary(date=day_view.date)
    for task in day_view.all_tasks():
        summary.total += 1
        if task.completed:
            summary.completed += 1
            continue
        summary.pending += 1
        if task.due_date == day_view.date:
            summary.due_today += 1
        elif task.due_date and task.due_date < day_view.date:
            summary.overdue += 1
    return summary


def list_tasks_for_date(target_date: DateLike, owner: Optional[str] = None) -> List[Task]:
    """
    Tasks due on a date plus undated tasks, without carryover or projection.

    Returns:
        Stored tasks ordered by creation; empty on unresolved owner or
        store failure
    """
    day = coerce_date(target_date)
    owner = config.resolve_owner(owner)
    if owner is None:
        return []

    try:
        return repository.list_tasks_for_date(owner, day)
    except PersistenceError as e:
        logger.error("Task listing for %s degraded to empty: %s", day, e)
        return []


def list_tasks_in_range(
    start: DateLike, end: DateLike, owner: Optional[str] = None
) -> List[Task]:
    """
    Calendar read: tasks due between start and end (inclusive) plus undated tasks.

    Raises:
        ValidationError: If either date is malformed or start is after end
    """
    start_day = coerce_date(start)
    end_day = coerce_date(end)
    if start_day > end_day:
        raise ValidationError(f"Range start {start_day} is after end {end_day}")

    owner = config.resolve_owner(owner)
    if owner is None:
        return []

    try:
        return repository.list_tasks_in_range(owner, start_day, end_day)
    except PersistenceError as e:
        logger.error("Range %s..%s degraded to empty: %s", start_day, end_day, e)
        return []

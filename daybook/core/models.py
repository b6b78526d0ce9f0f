"""
FILE: daybook/core/models.py
PURPOSE: Domain models for categories, tasks, and the aggregated day view
EXPORTS:
  - Category (dataclass)
  - Task (dataclass)
  - CategoryGroup (dataclass)
  - DayView (dataclass)
  - DaySummary (dataclass)
  - ReorderResult (dataclass)
  - uncategorized_category(owner) -> Category
DEPENDENCIES:
  - dataclasses (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - Category and Task have from_row() for SQLite row conversion
  - All models have to_json() for serialization
  - Optional fields use None as default
  - Dates stored as YYYY-MM-DD strings, timestamps as ISO-8601 strings
  - SQLite stores booleans as 0/1, from_row() converts them back
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import json

from .constants import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    DEFAULT_PRIORITY,
    UNCATEGORIZED_COLOR,
    UNCATEGORIZED_ICON,
    UNCATEGORIZED_ID,
    UNCATEGORIZED_NAME,
    UNCATEGORIZED_ORDER_INDEX,
)


@dataclass
class Category:
    """A user-defined grouping of tasks, optionally recurring daily."""

    id: str
    owner: str
    name: str
    icon: str = DEFAULT_CATEGORY_ICON
    color: str = DEFAULT_CATEGORY_COLOR
    order_index: int = 0
    is_recurring: bool = False
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Category":
        """Convert SQLite row to Category object."""
        return cls(
            id=row["id"],
            owner=row["owner"],
            name=row["name"],
            icon=row["icon"],
            color=row["color"],
            order_index=row["order_index"],
            is_recurring=bool(row["is_recurring"]),
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def is_uncategorized(self) -> bool:
        return self.id == UNCATEGORIZED_ID

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize category to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class Task:
    """A task with priority, optional due date/time, and category membership."""

    id: str
    owner: str
    title: str
    completed: bool = False
    priority: str = DEFAULT_PRIORITY
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    category_id: Optional[str] = None
    completed_date: Optional[str] = None
    notes: Optional[str] = None
    order_index: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Task":
        """Convert SQLite row to Task object."""
        return cls(
            id=row["id"],
            owner=row["owner"],
            title=row["title"],
            completed=bool(row["completed"]),
            priority=row["priority"],
            due_date=row["due_date"],
            due_time=row["due_time"],
            category_id=row["category_id"],
            completed_date=row["completed_date"],
            notes=row["notes"],
            order_index=row["order_index"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize task to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


def uncategorized_category(owner: str) -> Category:
    """Build the synthetic bucket that holds tasks with no category."""
    return Category(
        id=UNCATEGORIZED_ID,
        owner=owner,
        name=UNCATEGORIZED_NAME,
        icon=UNCATEGORIZED_ICON,
        color=UNCATEGORIZED_COLOR,
        order_index=UNCATEGORIZED_ORDER_INDEX,
        is_recurring=False,
        is_active=True,
    )


@dataclass
class CategoryGroup:
    """One section of a day view: a category and its (projected) tasks."""

    category: Category
    tasks: List[Task] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.to_dict(),
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass
class DayView:
    """Categorized, date-projected tasks for a single calendar date."""

    date: str
    groups: List[CategoryGroup] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def all_tasks(self) -> List[Task]:
        """Flatten every group's tasks, in display order."""
        return [task for group in self.groups for task in group.tasks]

    def group(self, category_id: str) -> Optional[CategoryGroup]:
        return next(
            (g for g in self.groups if g.category.id == category_id), None
        )

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.all_tasks() if t.id == task_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "groups": [g.to_dict() for g in self.groups],
        }

    def to_json(self) -> str:
        """Serialize day view to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class DaySummary:
    """Counts shown above a day view."""

    date: str
    total: int = 0
    pending: int = 0
    completed: int = 0
    due_today: int = 0
    overdue: int = 0

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)


@dataclass
class ReorderResult:
    """Outcome of a single id within a best-effort reorder batch."""

    id: str
    ok: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

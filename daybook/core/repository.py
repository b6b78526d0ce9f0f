"""
FILE: daybook/core/repository.py
PURPOSE: Database operations and SQLite connection management
EXPORTS:
  - get_connection() -> Connection
  - init_database(conn) -> None
  - find_ids_by_prefix(table, owner, prefix) -> List[str]
  - create_category(owner, name, icon, color, is_recurring, order_index) -> Category
  - get_category(category_id, owner) -> Category | None
  - find_category_by_name(owner, name) -> Category | None
  - list_active_categories(owner) -> List[Category]
  - count_active_categories(owner) -> int
  - update_category(category_id, owner, fields) -> Category
  - archive_category(category_id, owner) -> None
  - set_category_order(category_id, owner, order_index) -> None
  - create_task(owner, title, priority, due_date, due_time, category_id, notes) -> Task
  - get_task(task_id, owner) -> Task | None
  - list_tasks_for_day(owner, date) -> List[Task]
  - list_tasks_for_date(owner, date) -> List[Task]
  - list_tasks_in_range(owner, start, end) -> List[Task]
  - update_task(task_id, owner, fields) -> Task
  - delete_task(task_id, owner) -> None
  - set_task_order(task_id, owner, category_id, order_index) -> None
DEPENDENCIES:
  - sqlite3 (stdlib)
  - logging (stdlib)
  - daybook.core.models (Category, Task)
  - daybook.core.exceptions (PersistenceError, TaskNotFoundError, CategoryNotFoundError)
NOTES:
  - Database stored at ~/.daybook/daybook.db (DAYBOOK_HOME overrides)
  - Auto-creates directory and initializes schema on first run
  - Returns domain objects (Task, Category), never raw dicts
  - Every query is scoped to an owner
  - Categories are soft-deleted only: there is no category delete here
  - sqlite3.Error is re-raised as PersistenceError
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from . import config
from .models import Category, Task
from .exceptions import PersistenceError, TaskNotFoundError, CategoryNotFoundError

logger = logging.getLogger(__name__)

# Database file location (cross-platform)
DB_DIR = config.data_dir()
DB_PATH = DB_DIR / "daybook.db"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    icon TEXT NOT NULL DEFAULT 'folder',
    color TEXT NOT NULL DEFAULT '#6366f1',
    order_index INTEGER NOT NULL DEFAULT 0,
    is_recurring INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_categories_owner_active
    ON categories(owner, is_active);

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    owner TEXT NOT NULL,
    title TEXT NOT NULL,
    completed INTEGER NOT NULL DEFAULT 0,
    priority TEXT NOT NULL DEFAULT 'medium'
        CHECK (priority IN ('low', 'medium', 'high')),
    due_date TEXT,
    due_time TEXT,
    category_id TEXT REFERENCES categories(id) ON DELETE SET NULL,
    completed_date TEXT,
    notes TEXT,
    order_index INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_tasks_owner_due_date ON tasks(owner, due_date);
CREATE INDEX IF NOT EXISTS idx_tasks_owner_completed ON tasks(owner, completed);
CREATE INDEX IF NOT EXISTS idx_tasks_category_order ON tasks(category_id, order_index);
"""

# Columns a partial update may touch, per table
CATEGORY_MUTABLE_COLUMNS = ("name", "icon", "color", "is_recurring", "order_index", "is_active")
TASK_MUTABLE_COLUMNS = (
    "title",
    "completed",
    "priority",
    "due_date",
    "due_time",
    "category_id",
    "completed_date",
    "notes",
    "order_index",
)

TASK_ORDER = "ORDER BY order_index, created_at, rowid"


def get_connection() -> sqlite3.Connection:
    """
    Get SQLite connection to the Daybook database.

    Creates the data directory if it doesn't exist.
    Enables row_factory for dict-like row access.
    Enables foreign key constraints.
    Initializes database schema on first connection.
    """
    DB_DIR.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    init_database(conn)

    return conn


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times (uses CREATE TABLE IF NOT EXISTS).
    """
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='tasks'"
    )
    tables_exist = cursor.fetchone() is not None

    if not tables_exist:
        conn.executescript(SCHEMA_SQL)
        conn.commit()


@contextmanager
def _session(operation: str) -> Iterator[sqlite3.Connection]:
    """Open a connection, commit on success, and map sqlite errors."""
    conn = None
    try:
        conn = get_connection()
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        if conn is not None:
            conn.rollback()
        logger.error("Store failure during %s: %s", operation, e)
        raise PersistenceError(operation, str(e)) from e
    finally:
        if conn is not None:
            conn.close()


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now().isoformat()


def _update_row(
    conn: sqlite3.Connection,
    table: str,
    allowed: tuple,
    row_id: str,
    owner: str,
    fields: Dict[str, Any],
) -> int:
    """Apply a partial update to one owned row; returns the affected row count."""
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValueError(f"Cannot update column(s) {sorted(unknown)} on {table}")

    assignments = [f"{column} = ?" for column in fields]
    assignments.append("updated_at = ?")
    params = list(fields.values()) + [_now(), row_id, owner]

    cursor = conn.execute(
        f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ? AND owner = ?",
        params,
    )
    return cursor.rowcount


def find_ids_by_prefix(table: str, owner: str, prefix: str) -> List[str]:
    """
    List ids in a table that start with the given prefix.

    Note:
        Lets the CLI accept the short ids it prints.
    """
    if table not in ("tasks", "categories"):
        raise ValueError(f"Unknown table {table}")

    with _session("find_ids_by_prefix") as conn:
        rows = conn.execute(
            f"SELECT id FROM {table} WHERE owner = ? AND substr(id, 1, ?) = ? ORDER BY rowid",
            (owner, len(prefix), prefix),
        ).fetchall()

    return [row["id"] for row in rows]


# --- Category Operations (soft-delete only) ---


def create_category(
    owner: str,
    name: str,
    icon: str,
    color: str,
    is_recurring: bool = False,
    order_index: int = 0,
) -> Category:
    """
    Create a new active category.

    Returns:
        Newly created Category object

    Raises:
        PersistenceError: If the insert fails
    """
    category_id = _new_id()
    now = _now()

    with _session("create_category") as conn:
        conn.execute(
            """
            INSERT INTO categories
                (id, owner, name, icon, color, order_index, is_recurring, is_active,
                 created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (category_id, owner, name, icon, color, order_index, int(is_recurring), now, now),
        )
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).fetchone()

    if not row:
        raise CategoryNotFoundError(category_id)

    return Category.from_row(row)


def get_category(category_id: str, owner: str) -> Optional[Category]:
    """
    Fetch single category by ID, whether active or archived.

    Returns:
        Category object if found, None otherwise
    """
    with _session("get_category") as conn:
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ? AND owner = ?",
            (category_id, owner),
        ).fetchone()

    return Category.from_row(row) if row else None


def find_category_by_name(owner: str, name: str) -> Optional[Category]:
    """
    Fetch a category by exact name, active or archived.

    Note:
        Used by bootstrap to avoid re-creating starters that were renamed
        back or archived.
    """
    with _session("find_category_by_name") as conn:
        row = conn.execute(
            "SELECT * FROM categories WHERE owner = ? AND name = ? ORDER BY rowid LIMIT 1",
            (owner, name),
        ).fetchone()

    return Category.from_row(row) if row else None


def list_active_categories(owner: str) -> List[Category]:
    """
    List active categories.

    Returns:
        Active categories for the owner, ordered by order_index
    """
    with _session("list_active_categories") as conn:
        rows = conn.execute(
            """
            SELECT * FROM categories
            WHERE owner = ? AND is_active = 1
            ORDER BY order_index, created_at, rowid
            """,
            (owner,),
        ).fetchall()

    return [Category.from_row(row) for row in rows]


def count_active_categories(owner: str) -> int:
    with _session("count_active_categories") as conn:
        row = conn.execute(
            "SELECT COUNT(*) FROM categories WHERE owner = ? AND is_active = 1",
            (owner,),
        ).fetchone()

    return row[0]


def update_category(category_id: str, owner: str, fields: Dict[str, Any]) -> Category:
    """
    Patch a category.

    Args:
        fields: Column -> value mapping (booleans are stored as 0/1)

    Raises:
        CategoryNotFoundError: If category doesn't exist for the owner
    """
    values = {
        column: int(value) if isinstance(value, bool) else value
        for column, value in fields.items()
    }

    with _session("update_category") as conn:
        if values:
            changed = _update_row(
                conn, "categories", CATEGORY_MUTABLE_COLUMNS, category_id, owner, values
            )
            if not changed:
                raise CategoryNotFoundError(category_id)
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ? AND owner = ?",
            (category_id, owner),
        ).fetchone()

    if not row:
        raise CategoryNotFoundError(category_id)

    return Category.from_row(row)


def archive_category(category_id: str, owner: str) -> None:
    """
    Archive a category (is_active = 0).

    Raises:
        CategoryNotFoundError: If category doesn't exist for the owner

    Note:
        Tasks keep their category_id. Archiving an archived category is a no-op.
    """
    with _session("archive_category") as conn:
        changed = _update_row(
            conn, "categories", CATEGORY_MUTABLE_COLUMNS, category_id, owner, {"is_active": 0}
        )

    if not changed:
        raise CategoryNotFoundError(category_id)


def set_category_order(category_id: str, owner: str, order_index: int) -> None:
    """Set a single category's order_index (one committed update)."""
    with _session("set_category_order") as conn:
        changed = _update_row(
            conn,
            "categories",
            CATEGORY_MUTABLE_COLUMNS,
            category_id,
            owner,
            {"order_index": order_index},
        )

    if not changed:
        raise CategoryNotFoundError(category_id)


# --- Task Operations ---


def create_task(
    owner: str,
    title: str,
    priority: str,
    due_date: Optional[str] = None,
    due_time: Optional[str] = None,
    category_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Task:
    """
    Create a new task.

    Note:
        Task starts with completed=0 and completed_date=NULL.
        Sets created_at and updated_at automatically.
    """
    task_id = _new_id()
    now = _now()

    with _session("create_task") as conn:
        conn.execute(
            """
            INSERT INTO tasks
                (id, owner, title, completed, priority, due_date, due_time,
                 category_id, completed_date, notes, order_index, created_at, updated_at)
            VALUES (?, ?, ?, 0, ?, ?, ?, ?, NULL, ?, 0, ?, ?)
            """,
            (task_id, owner, title, priority, due_date, due_time, category_id, notes, now, now),
        )
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()

    if not row:
        raise TaskNotFoundError(task_id)

    return Task.from_row(row)


def get_task(task_id: str, owner: str) -> Optional[Task]:
    """
    Fetch single task by ID.

    Returns:
        Task object if found, None otherwise
    """
    with _session("get_task") as conn:
        row = conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND owner = ?", (task_id, owner)
        ).fetchone()

    return Task.from_row(row) if row else None


def list_tasks_for_day(owner: str, date: str) -> List[Task]:
    """
    Fetch every task eligible for a day view, in a single query.

    A task is eligible when it is due on the date, has no due date, or is
    overdue and its raw completed flag is still false (carryover).
    """
    with _session("list_tasks_for_day") as conn:
        rows = conn.execute(
            f"""
            SELECT * FROM tasks
            WHERE owner = ?
              AND (
                    due_date = ?
                 OR due_date IS NULL
                 OR (due_date < ? AND completed = 0)
              )
            {TASK_ORDER}
            """,
            (owner, date, date),
        ).fetchall()

    return [Task.from_row(row) for row in rows]


def list_tasks_for_date(owner: str, date: str) -> List[Task]:
    """Tasks due on the date plus tasks with no due date (no carryover)."""
    with _session("list_tasks_for_date") as conn:
        rows = conn.execute(
            """
            SELECT * FROM tasks
            WHERE owner = ? AND (due_date = ? OR due_date IS NULL)
            ORDER BY created_at, rowid
            """,
            (owner, date),
        ).fetchall()

    return [Task.from_row(row) for row in rows]


def list_tasks_in_range(owner: str, start: str, end: str) -> List[Task]:
    """Tasks due within [start, end] plus tasks with no due date."""
    with _session("list_tasks_in_range") as conn:
        rows = conn.execute(
            """
            SELECT * FROM tasks
            WHERE owner = ?
              AND ((due_date >= ? AND due_date <= ?) OR due_date IS NULL)
            ORDER BY created_at, rowid
            """,
            (owner, start, end),
        ).fetchall()

    return [Task.from_row(row) for row in rows]


def update_task(task_id: str, owner: str, fields: Dict[str, Any]) -> Task:
    """
    Patch a task.

    Args:
        fields: Column -> value mapping (booleans are stored as 0/1)

    Returns:
        Updated Task object

    Raises:
        TaskNotFoundError: If task doesn't exist for the owner
    """
    values = {
        column: int(value) if isinstance(value, bool) else value
        for column, value in fields.items()
    }

    with _session("update_task") as conn:
        if values:
            changed = _update_row(conn, "tasks", TASK_MUTABLE_COLUMNS, task_id, owner, values)
            if not changed:
                raise TaskNotFoundError(task_id)
        row = conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND owner = ?", (task_id, owner)
        ).fetchone()

    if not row:
        raise TaskNotFoundError(task_id)

    return Task.from_row(row)


def delete_task(task_id: str, owner: str) -> None:
    """
    Delete task by ID.

    Raises:
        TaskNotFoundError: If task doesn't exist

    Note:
        Permanent deletion. Tasks have no soft-delete.
    """
    with _session("delete_task") as conn:
        cursor = conn.execute(
            "DELETE FROM tasks WHERE id = ? AND owner = ?", (task_id, owner)
        )
        deleted = cursor.rowcount

    if not deleted:
        raise TaskNotFoundError(task_id)


def set_task_order(
    task_id: str, owner: str, category_id: Optional[str], order_index: int
) -> None:
    """
    Set a task's position inside its category (one committed update).

    Raises:
        TaskNotFoundError: If no task with that id lives in the category

    Note:
        category_id None targets the uncategorized bucket, which also holds
        tasks whose category was archived.
    """
    if category_id is None:
        scope = (
            "(category_id IS NULL OR category_id IN "
            "(SELECT id FROM categories WHERE owner = ? AND is_active = 0))"
        )
        scope_params = (owner,)
    else:
        scope = "category_id = ?"
        scope_params = (category_id,)

    with _session("set_task_order") as conn:
        cursor = conn.execute(
            f"""
            UPDATE tasks SET order_index = ?, updated_at = ?
            WHERE id = ? AND owner = ? AND {scope}
            """,
            (order_index, _now(), task_id, owner) + scope_params,
        )
        changed = cursor.rowcount

    if not changed:
        raise TaskNotFoundError(task_id)

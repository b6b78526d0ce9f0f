"""
FILE: daybook/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - DaybookError (base exception)
  - AuthResolutionError
  - PersistenceError
  - ValidationError
  - TaskNotFoundError
  - CategoryNotFoundError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from DaybookError for easy catching
  - Exceptions include context (IDs) for helpful error messages
  - Service layer raises these, CLI catches and displays
  - Read paths swallow AuthResolutionError/PersistenceError into empty results;
    write paths let them propagate
"""


class DaybookError(Exception):
    """Base exception for all Daybook errors."""
    pass


class AuthResolutionError(DaybookError):
    """No owner could be resolved for the current operation."""

    def __init__(self, message: str = "No owner context available"):
        super().__init__(message)


class PersistenceError(DaybookError):
    """The underlying store rejected a read or write."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        message = f"Store failure during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ValidationError(DaybookError):
    """Input validation failed before reaching the store."""

    def __init__(self, message: str):
        super().__init__(message)


class TaskNotFoundError(DaybookError):
    """Task with given ID doesn't exist."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class CategoryNotFoundError(DaybookError):
    """Category with given ID doesn't exist."""

    def __init__(self, category_id: str):
        self.category_id = category_id
        super().__init__(f"Category {category_id} not found")

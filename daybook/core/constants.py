"""
FILE: daybook/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - VALID_PRIORITIES / DEFAULT_PRIORITY: Task priority values
  - DEFAULT_CATEGORY_ICON / DEFAULT_CATEGORY_COLOR: Category defaults
  - UNCATEGORIZED_*: Identity and display values of the synthetic bucket
  - STARTER_CATEGORIES: Categories created by bootstrap for new owners
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Centralized constants to avoid magic strings
  - Single source of truth for the uncategorized bucket
"""

# Task priority constants
PRIORITY_LOW = "low"
PRIORITY_MEDIUM = "medium"
PRIORITY_HIGH = "high"
VALID_PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH)
DEFAULT_PRIORITY = PRIORITY_MEDIUM

# Category defaults
DEFAULT_CATEGORY_ICON = "folder"
DEFAULT_CATEGORY_COLOR = "#6366f1"

# Synthetic bucket for tasks without a category (never persisted)
UNCATEGORIZED_ID = "uncategorized"
UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_ICON = "inbox"
UNCATEGORIZED_COLOR = "#64748b"
UNCATEGORIZED_ORDER_INDEX = 999

# Starter set: (name, icon, color, is_recurring), order_index is the position
STARTER_CATEGORIES = (
    ("Daily Recurring", "repeat", "#8b5cf6", True),
    ("One-Time Tasks", "task_alt", "#3b82f6", False),
    ("Work", "business_center", "#f59e0b", False),
    ("Personal", "person", "#10b981", False),
)

# Date/time formats
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMATS = ("%H:%M", "%H:%M:%S")

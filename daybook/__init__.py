"""Daybook: categorized daily task list with recurring categories."""

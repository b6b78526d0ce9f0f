"""
Test task mutations, completion bookkeeping, moves and id resolution.
"""

# Path setup handled by conftest.py
from datetime import date

import pytest

from daybook.core import config, repository, service
from daybook.core.exceptions import (
    AuthResolutionError,
    CategoryNotFoundError,
    TaskNotFoundError,
    ValidationError,
)


@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    """Use temporary database and a fixed owner for all tests."""
    db_path = tmp_path / "test_daybook.db"
    monkeypatch.setattr(repository, "DB_PATH", db_path)
    monkeypatch.setattr(repository, "DB_DIR", tmp_path)
    monkeypatch.setenv("DAYBOOK_OWNER", "alice")
    config.set_owner_override(None)
    yield db_path


JUNE_1 = date(2025, 6, 1)


# --- create ---


def test_create_task_validation():
    task = service.create_task(
        "  Write docs  ", priority="HIGH", due_date="2025-06-01", due_time="9:05", notes=" n "
    )

    assert task.title == "Write docs"
    assert task.priority == "high"
    assert task.due_date == "2025-06-01"
    assert task.due_time == "09:05"
    assert task.notes == "n"
    assert task.category_id is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"title": ""},
        {"title": "x", "priority": "urgent"},
        {"title": "x", "due_date": "06/01/2025"},
        {"title": "x", "due_time": "25:00"},
    ],
)
def test_create_task_rejects_bad_input(kwargs):
    with pytest.raises(ValidationError):
        service.create_task(**kwargs)


def test_create_task_unknown_category():
    with pytest.raises(CategoryNotFoundError):
        service.create_task("x", category_id="missing")


def test_create_task_uncategorized_alias():
    task = service.create_task("x", category_id="uncategorized")
    assert task.category_id is None


def test_create_task_requires_owner(monkeypatch):
    monkeypatch.setenv("DAYBOOK_OWNER", "")
    with pytest.raises(AuthResolutionError):
        service.create_task("x")


# --- completion ---


def test_toggle_recurring_sets_and_clears_date():
    task = service.create_task("Stretch")

    done = service.toggle_completion(task.id, True, True, today=JUNE_1)
    assert done.completed is True
    assert done.completed_date == "2025-06-01"

    undone = service.toggle_completion(task.id, False, True, today=JUNE_1)
    assert undone.completed is False
    assert undone.completed_date is None


def test_toggle_non_recurring_leaves_date_alone():
    task = service.create_task("Email")

    done = service.toggle_completion(task.id, True, False, today=JUNE_1)
    assert done.completed is True
    assert done.completed_date is None


def test_toggle_non_recurring_keeps_stale_date():
    """A non-recurring toggle never rewrites an existing completed_date."""
    task = service.create_task("Email")
    service.toggle_completion(task.id, True, True, today=JUNE_1)

    undone = service.toggle_completion(task.id, False, False, today=date(2025, 6, 3))
    assert undone.completed is False
    assert undone.completed_date == "2025-06-01"

    redone = service.toggle_completion(task.id, True, False, today=date(2025, 6, 3))
    assert redone.completed is True
    assert redone.completed_date == "2025-06-01"


def test_toggle_is_idempotent():
    """Repeating the same toggle yields the same stored state."""
    task = service.create_task("Stretch")

    first = service.toggle_completion(task.id, True, True, today=JUNE_1)
    second = service.toggle_completion(task.id, True, True, today=JUNE_1)

    assert (first.completed, first.completed_date) == (second.completed, second.completed_date)


def test_toggle_defaults_to_today():
    task = service.create_task("Stretch")
    done = service.toggle_completion(task.id, True, True)
    assert done.completed_date == date.today().isoformat()


def test_toggle_unknown_task():
    with pytest.raises(TaskNotFoundError):
        service.toggle_completion("missing", True, False)


def test_category_is_recurring():
    habits = service.create_category("Habits", is_recurring=True)
    work = service.create_category("Work")

    assert service.category_is_recurring(habits.id) is True
    assert service.category_is_recurring(work.id) is False
    assert service.category_is_recurring(None) is False
    assert service.category_is_recurring("uncategorized") is False

    service.archive_category(habits.id)
    assert service.category_is_recurring(habits.id) is False


# --- update / delete ---


def test_update_task_fields():
    task = service.create_task("Draft", due_date="2025-06-01")
    updated = service.update_task(task.id, title="Final", due_date=None, priority="low")

    assert updated.title == "Final"
    assert updated.due_date is None
    assert updated.priority == "low"


@pytest.mark.parametrize("field", ["completed", "completed_date", "category_id", "created_at"])
def test_update_task_rejects_protected_fields(field):
    task = service.create_task("Draft")
    with pytest.raises(ValidationError):
        service.update_task(task.id, **{field: None})


def test_delete_task():
    task = service.create_task("Trash")
    service.delete_task(task.id)

    with pytest.raises(TaskNotFoundError):
        service.get_task(task.id)
    with pytest.raises(TaskNotFoundError):
        service.delete_task(task.id)


def test_tasks_scoped_by_owner(monkeypatch):
    task = service.create_task("Private")

    monkeypatch.setenv("DAYBOOK_OWNER", "bob")
    with pytest.raises(TaskNotFoundError):
        service.get_task(task.id)
    with pytest.raises(TaskNotFoundError):
        service.delete_task(task.id)


# --- move ---


def test_move_keeps_completion_state():
    """Moving doesn't touch completed or completed_date."""
    habits = service.create_category("Habits", is_recurring=True)
    work = service.create_category("Work")
    task = service.create_task("Stretch", category_id=habits.id)
    service.toggle_completion(task.id, True, True, today=JUNE_1)

    moved = service.move_task(task.id, work.id)

    assert moved.category_id == work.id
    assert moved.completed is True
    assert moved.completed_date == "2025-06-01"


def test_move_to_uncategorized_and_back():
    work = service.create_category("Work")
    task = service.create_task("Loose", category_id=work.id)

    assert service.move_task(task.id, "uncategorized").category_id is None
    assert service.move_task(task.id, work.id).category_id == work.id


def test_move_rejects_archived_or_missing_target():
    old = service.create_category("Old")
    service.archive_category(old.id)
    task = service.create_task("x")

    with pytest.raises(ValidationError):
        service.move_task(task.id, old.id)
    with pytest.raises(CategoryNotFoundError):
        service.move_task(task.id, "missing")
    with pytest.raises(TaskNotFoundError):
        service.move_task("missing", None)


# --- reorder within a category ---


def test_reorder_tasks_reports_foreign_ids():
    work = service.create_category("Work")
    a = service.create_task("A", category_id=work.id)
    b = service.create_task("B", category_id=work.id)
    stray = service.create_task("Stray")

    results = service.reorder_tasks(work.id, [b.id, stray.id, a.id])

    assert [r.ok for r in results] == [True, False, True]
    assert service.get_task(b.id).order_index == 0
    assert service.get_task(a.id).order_index == 2
    assert service.get_task(stray.id).order_index == 0


def test_reorder_uncategorized_bucket():
    a = service.create_task("A")
    b = service.create_task("B")

    results = service.reorder_tasks("uncategorized", [b.id, a.id])

    assert all(r.ok for r in results)
    assert service.get_task(a.id).order_index == 1


def test_reorder_uncategorized_includes_archived_category_tasks():
    """Tasks shown under Uncategorized after an archive can be reordered there."""
    old = service.create_category("Old")
    loose = service.create_task("Loose")
    orphan = service.create_task("Orphan", category_id=old.id)
    service.archive_category(old.id)

    results = service.reorder_tasks("uncategorized", [orphan.id, loose.id])

    assert all(r.ok for r in results)
    assert service.get_task(orphan.id).order_index == 0
    assert service.get_task(orphan.id).category_id == old.id
    assert service.get_task(loose.id).order_index == 1


def test_reorder_uncategorized_rejects_active_category_tasks():
    work = service.create_category("Work")
    filed = service.create_task("Filed", category_id=work.id)

    results = service.reorder_tasks(None, [filed.id])

    assert results[0].ok is False


# --- id resolution ---


def test_resolve_task_id_by_prefix():
    task = service.create_task("Findable")

    assert service.resolve_task_id(task.id) == task.id
    assert service.resolve_task_id(task.id[:8]) == task.id
    assert service.resolve_task_id(task.id[:8].upper()) == task.id

    with pytest.raises(TaskNotFoundError):
        service.resolve_task_id("zzzz")
    with pytest.raises(ValidationError):
        service.resolve_task_id("  ")


def test_resolve_ambiguous_prefix(monkeypatch):
    ids = iter(["abc111", "abc222"])
    monkeypatch.setattr(repository, "_new_id", lambda: next(ids))
    service.create_task("One")
    service.create_task("Two")

    with pytest.raises(ValidationError):
        service.resolve_task_id("abc")
    assert service.resolve_task_id("abc2") == "abc222"

"""
Test category lifecycle: validation, archive, reorder and starter bootstrap.
"""

# Path setup handled by conftest.py
import pytest

from daybook.core import config, repository, service
from daybook.core.constants import STARTER_CATEGORIES
from daybook.core.exceptions import (
    AuthResolutionError,
    CategoryNotFoundError,
    PersistenceError,
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
    config.set_owner_override(None)


# --- create / update ---


def test_create_category_defaults():
    category = service.create_category("Errands")

    assert category.icon == "folder"
    assert category.color == "#6366f1"
    assert category.is_recurring is False
    assert category.is_active is True
    assert category.owner == "alice"


def test_create_category_normalizes_color():
    """Short hex colors are expanded and lowercased."""
    category = service.create_category("Errands", color="#F0A")
    assert category.color == "#ff00aa"


@pytest.mark.parametrize("color", ["red", "#12345", "6366f1", ""])
def test_create_category_rejects_bad_color(color):
    with pytest.raises(ValidationError):
        service.create_category("Errands", color=color)


def test_create_category_rejects_blank_name():
    with pytest.raises(ValidationError):
        service.create_category("   ")


def test_update_category_fields():
    category = service.create_category("Habits")
    updated = service.update_category(
        category.id, name="Routines", icon="repeat", is_recurring=True
    )

    assert updated.name == "Routines"
    assert updated.icon == "repeat"
    assert updated.is_recurring is True


def test_update_category_rejects_unknown_fields():
    category = service.create_category("Habits")
    with pytest.raises(ValidationError):
        service.update_category(category.id, is_active=False)
    with pytest.raises(CategoryNotFoundError):
        service.update_category("missing", name="X")


def test_find_category_by_name_case_insensitive():
    category = service.create_category("Work")

    assert service.find_category_by_name("work").id == category.id
    assert service.find_category_by_name("nope") is None

    with pytest.raises(ValidationError) as exc_info:
        service.find_category_by_name_or_raise("nope")
    assert "Work" in str(exc_info.value)


def test_new_category_sorts_after_existing_at_same_position():
    """New categories start at position 0 and ties keep creation order."""
    starters = service.ensure_bootstrap()
    errands = service.create_category("Errands")

    listed = [c.name for c in service.list_categories()]
    assert errands.order_index == 0
    assert listed.index("Errands") == 1
    assert listed[0] == starters[0].name


# --- archive ---


def test_archive_hides_from_listing_but_keeps_row():
    """Archived categories leave the listing; the row stays readable."""
    keep = service.create_category("Keep")
    gone = service.create_category("Gone")

    service.archive_category(gone.id)
    service.archive_category(gone.id)

    assert [c.id for c in service.list_categories()] == [keep.id]
    assert service.get_category(gone.id).is_active is False


def test_archive_unknown_category():
    with pytest.raises(CategoryNotFoundError):
        service.archive_category("missing")


def test_archived_category_rejects_new_tasks():
    category = service.create_category("Old")
    service.archive_category(category.id)

    with pytest.raises(ValidationError):
        service.create_task("Late addition", category_id=category.id)


# --- reorder ---


def test_reorder_assigns_positions():
    a = service.create_category("A")
    b = service.create_category("B")
    c = service.create_category("C")

    results = service.reorder_categories([c.id, a.id, b.id])

    assert all(r.ok for r in results)
    assert [cat.id for cat in service.list_categories()] == [c.id, a.id, b.id]
    assert [cat.order_index for cat in service.list_categories()] == [0, 1, 2]


def test_reorder_partial_failure_keeps_other_updates():
    """A bad id fails on its own; the rest are still applied."""
    a = service.create_category("A")
    b = service.create_category("B")

    results = service.reorder_categories([b.id, "missing", a.id])

    assert [r.ok for r in results] == [True, False, True]
    assert "missing" in results[1].error
    assert service.get_category(b.id).order_index == 0
    assert service.get_category(a.id).order_index == 2


# --- bootstrap ---


def test_bootstrap_creates_starters_once():
    """Bootstrap seeds the starter set and is a no-op afterwards."""
    created = service.ensure_bootstrap()

    assert [c.name for c in created] == [name for name, _, _, _ in STARTER_CATEGORIES]
    assert [c.order_index for c in created] == list(range(len(STARTER_CATEGORIES)))
    recurring = [c.name for c in created if c.is_recurring]
    assert recurring == ["Daily Recurring"]

    assert service.ensure_bootstrap() == []
    assert len(service.list_categories()) == len(STARTER_CATEGORIES)


def test_bootstrap_skipped_when_categories_exist():
    service.create_category("Mine")

    assert service.ensure_bootstrap() == []
    assert [c.name for c in service.list_categories()] == ["Mine"]


def test_bootstrap_skips_archived_starter_names():
    """Starters aren't recreated over an archived category of the same name."""
    old = service.create_category("Work")
    service.archive_category(old.id)

    created = service.ensure_bootstrap()

    assert "Work" not in [c.name for c in created]
    assert len(created) == len(STARTER_CATEGORIES) - 1


def test_has_any_categories():
    assert service.has_any_categories() is False
    service.create_category("One")
    assert service.has_any_categories() is True


# --- owner resolution ---


def test_owners_are_isolated(monkeypatch):
    service.create_category("Alice only")

    monkeypatch.setenv("DAYBOOK_OWNER", "bob")
    assert service.list_categories() == []
    assert service.list_categories(owner="alice")[0].name == "Alice only"


def test_owner_override_wins_over_environment():
    config.set_owner_override("carol")
    category = service.create_category("Carol's")
    assert category.owner == "carol"


def test_unresolved_owner(monkeypatch):
    """Reads degrade to empty; writes raise."""
    monkeypatch.setenv("DAYBOOK_OWNER", "")

    assert service.list_categories() == []
    assert service.has_any_categories() is False
    with pytest.raises(AuthResolutionError):
        service.create_category("Nobody's")
    with pytest.raises(AuthResolutionError):
        service.ensure_bootstrap()


def test_store_failure_on_read_degrades(monkeypatch):
    def broken(owner):
        raise PersistenceError("list_active_categories", "disk I/O error")

    monkeypatch.setattr(repository, "list_active_categories", broken)
    assert service.list_categories() == []

"""Test the daybook CLI end to end against a throwaway data directory."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def run_cli(tmp_path):
    """Run `python -m daybook ...` with DAYBOOK_HOME pointed at tmp_path."""
    env = dict(os.environ)
    env["DAYBOOK_HOME"] = str(tmp_path)
    env["DAYBOOK_OWNER"] = "alice"
    env["DAYBOOK_LOG_LEVEL"] = "WARNING"
    env["COLUMNS"] = "200"
    env["PYTHONIOENCODING"] = "utf-8"

    def _run(*args):
        return subprocess.run(
            [sys.executable, "-m", "daybook", *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=str(PROJECT_ROOT),
            env=env,
        )

    return _run


def _json(result):
    assert result.returncode == 0, result.stderr
    return json.loads(result.stdout)


def test_version(run_cli):
    result = run_cli("version")
    assert result.returncode == 0
    assert "Daybook v" in result.stdout


def test_today_bootstraps_starter_categories(run_cli):
    """First look at today seeds categories; uncategorized comes last."""
    view = _json(run_cli("today", "--json"))

    names = [g["category"]["name"] for g in view["groups"]]
    assert names == [
        "Daily Recurring",
        "One-Time Tasks",
        "Work",
        "Personal",
        "Uncategorized",
    ]

    categories = _json(run_cli("category", "ls", "--json"))
    assert len(categories) == 4


def test_daily_task_resets_between_days(run_cli):
    run_cli("category", "bootstrap")
    task = _json(run_cli("add", "Stretch", "--category", "daily recurring", "--json"))
    assert task["due_date"] is None

    done = _json(run_cli("done", task["id"][:8], "--json"))
    assert done[0]["completed"] is True
    completed_on = done[0]["completed_date"]
    assert completed_on is not None

    same_day = _json(run_cli("day", completed_on, "--json"))
    recurring = same_day["groups"][0]
    assert recurring["tasks"][0]["completed"] is True

    year, month, day = completed_on.split("-")
    next_day = _json(run_cli("day", f"{int(year) + 1}-{month}-01", "--json"))
    assert next_day["groups"][0]["tasks"][0]["completed"] is False


def test_add_show_edit_rm(run_cli):
    task = _json(run_cli("add", "Write report", "--due", "2025-06-01", "--priority", "high", "--json"))
    short = task["id"][:8]

    shown = _json(run_cli("show", short, "--json"))
    assert shown["title"] == "Write report"
    assert shown["priority"] == "high"

    edited = _json(run_cli("edit", short, "--title", "Write final report", "--due", "none", "--json"))
    assert edited["title"] == "Write final report"
    assert edited["due_date"] is None

    result = run_cli("rm", short, "--raw")
    assert result.returncode == 0
    assert f"Deleted task {task['id']}" in result.stdout

    missing = run_cli("show", short)
    assert missing.returncode == 1
    assert "Error" in missing.stderr


def test_raw_day_output(run_cli):
    run_cli("add", "Loose end")

    result = run_cli("day", "2025-06-01", "--raw", "--summary")

    assert result.returncode == 0
    lines = result.stdout.strip().splitlines()
    assert lines[0] == "# Uncategorized"
    assert lines[1].endswith(": [ ] Loose end")
    assert lines[-1] == "1 pending, 0 done, 0 due today, 0 overdue"


def test_move_and_category_archive(run_cli):
    category = _json(run_cli("category", "add", "Errands", "--color", "#F97", "--json"))
    assert category["color"] == "#ff9977"

    task = _json(run_cli("add", "Buy milk", "--json"))
    moved = _json(run_cli("mv", task["id"], "Errands", "--json"))
    assert moved["category_id"] == category["id"]

    archived = _json(run_cli("category", "archive", "Errands", "--json"))
    assert archived["is_active"] is False

    view = _json(run_cli("day", "2025-06-01", "--json"))
    bucket = view["groups"][-1]
    assert bucket["category"]["id"] == "uncategorized"
    assert [t["id"] for t in bucket["tasks"]] == [task["id"]]


def test_category_reorder_reports_failures(run_cli):
    a = _json(run_cli("category", "add", "A", "--json"))
    b = _json(run_cli("category", "add", "B", "--json"))

    result = run_cli("category", "reorder", "B", "nosuch", "A", "--json")

    assert result.returncode == 1
    outcome = json.loads(result.stdout)
    assert [r["ok"] for r in outcome] == [True, False, True]

    names = [c["name"] for c in _json(run_cli("category", "ls", "--json"))]
    assert names == ["B", "A"]
    assert a["id"] != b["id"]


def test_validation_errors_exit_nonzero(run_cli):
    bad_priority = run_cli("add", "x", "--priority", "urgent")
    assert bad_priority.returncode == 1
    assert "Invalid priority" in bad_priority.stderr

    bad_date = run_cli("day", "June 1st")
    assert bad_date.returncode == 1
    assert "Invalid date" in bad_date.stderr

    bad_range = run_cli("range", "2025-06-07", "2025-06-01")
    assert bad_range.returncode == 1


def test_owner_option_isolates_data(run_cli):
    _json(run_cli("add", "Alice's task", "--json"))

    theirs = _json(run_cli("--owner", "bob", "day", "2025-06-01", "--json"))
    assert theirs["groups"][-1]["tasks"] == []


def test_machine_output_keeps_emoji_codes(run_cli):
    """--json and --raw print titles exactly as stored."""
    title = "Fix :bug: in :thumbs_up: parser"

    task = _json(run_cli("add", title, "--json"))
    assert task["title"] == title

    shown = _json(run_cli("show", task["id"], "--json"))
    assert shown["title"] == title

    raw = run_cli("day", "2025-06-01", "--raw")
    assert f"{task['id']}: [ ] {title}" in raw.stdout.splitlines()

# tests/test_console_view.py

from __future__ import annotations

from datetime import date

import pytest

from taskdeck.connectors.console_view import ConsoleListView, format_task_line
from taskdeck.core.models import Priority, RecurrenceType, Task
from taskdeck.tasks.kv_store import KeyValueStore


def test_format_task_line() -> None:
    task = Task(
        id="t",
        title="Standup",
        category_id="work",
        tag_ids=("meeting", "gone"),
        priority=Priority.HIGH,
        due_date=date(2024, 1, 10),
        due_time="09:00",
        is_recurring=True,
        recurrence_type=RecurrenceType.WEEKLY,
    )
    line = format_task_line(task, {"work": "Work"}, {"meeting": "Meeting"})
    assert line == "[ ] Standup (Work) #Meeting !!! due 2024-01-10 09:00 ~weekly"


def test_replace_of_missing_row_raises() -> None:
    view = ConsoleListView()
    with pytest.raises(KeyError):
        view.replace(Task(id="nope", title="x"))


def test_render_empty_and_hidden_rows() -> None:
    view = ConsoleListView()
    assert "No tasks found." in view.render("All tasks")

    view.add(Task(id="a", title="first", priority=Priority.LOW))
    out = view.render("All tasks", hidden=4).splitlines()
    assert out == ["All tasks", "   1. [ ] first !", "  ... 4 more (use /more to show all)"]


def test_kv_store_round_trip(tmp_path) -> None:
    kv = KeyValueStore(tmp_path / "kv.sqlite3")
    assert kv.get_json("missing", default=[]) == []

    kv.set_json("todoTags", [{"id": "x"}])
    kv.set_json("todoTags", [{"id": "y"}])
    assert kv.get_json("todoTags") == [{"id": "y"}]
    assert kv.keys() == ["todoTags"]

    kv.delete("todoTags")
    assert kv.get_json("todoTags") is None

# tests/test_validation.py

from __future__ import annotations

from datetime import date

import pytest

from taskdeck.core.models import Category, Task
from taskdeck.core.validation import (
    validate_category,
    validate_color,
    validate_retention_days,
    validate_sort_options,
    validate_task,
    validate_time,
)


@pytest.mark.parametrize("value", ["09:00", "9:05", "23:59", None, ""])
def test_valid_times(value) -> None:
    assert validate_time(value)


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "1200"])
def test_invalid_times(value) -> None:
    assert not validate_time(value)


def test_colors() -> None:
    assert validate_color("#A1b2C3")
    assert not validate_color("#abc")
    assert not validate_color("")


def test_title_and_description_limits() -> None:
    ok = Task(id="t", title="x" * 100, description="d" * 500)
    assert validate_task(ok)

    result = validate_task(Task(id="t", title="x" * 101, description="d" * 501))
    assert result.errors == [
        "Task title must be at most 100 characters.",
        "Description must be at most 500 characters.",
    ]


def test_recurring_task_needs_due_date() -> None:
    assert not validate_task(Task(id="t", title="x", is_recurring=True))
    assert validate_task(Task(id="t", title="x", is_recurring=True, due_date=date(2024, 1, 1)))


def test_category_name_required() -> None:
    result = validate_category(Category(id="c", name="", color="#000000"))
    assert result.errors == ["Category name is required."]


def test_sort_options_and_retention() -> None:
    assert validate_sort_options("dueDate", "asc")
    assert len(validate_sort_options("size", "up").errors) == 2

    assert validate_retention_days(30)
    assert not validate_retention_days(0)
    assert not validate_retention_days(366)
    assert not validate_retention_days("30")


def test_missing_tag_list_is_not_an_error() -> None:
    assert validate_task(Task(id="t", title="x", tag_ids=None))  # type: ignore[arg-type]

# src/taskdeck/core/validation.py

"""
Record validation.

Every check returns a ValidationResult; nothing here raises. Callers decide
whether the errors are user-visible.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from .models import MAX_TAGS_PER_TASK, Category, Tag, Task, ValidationResult

TITLE_MAX = 100
DESCRIPTION_MAX = 500
CATEGORY_NAME_MAX = 50
TAG_NAME_MAX = 30
RETENTION_DAYS_MIN = 1
RETENTION_DAYS_MAX = 365

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

VALID_SORT_FIELDS = ("createdAt", "title", "priority", "status", "category", "tags", "dueDate")
VALID_SORT_DIRECTIONS = ("asc", "desc")


def _check_required(value: str | None, label: str) -> str | None:
    if not value or not value.strip():
        return f"{label} is required."
    return None


def _check_length(value: str | None, max_len: int, label: str) -> str | None:
    if not value:
        return None
    if len(value.strip()) > max_len:
        return f"{label} must be at most {max_len} characters."
    return None


def validate_color(color: str | None) -> ValidationResult:
    if not color:
        return ValidationResult.fail("Color is required.")
    if not HEX_COLOR_RE.match(color):
        return ValidationResult.fail("Color must be a hex value (#RRGGBB).")
    return ValidationResult.ok()


def validate_time(value: str | None) -> ValidationResult:
    if not value:
        return ValidationResult.ok()
    if not TIME_RE.match(value):
        return ValidationResult.fail("Time must use the HH:MM format.")
    return ValidationResult.ok()


def validate_task(task: Task) -> ValidationResult:
    result = ValidationResult.ok()

    err = _check_required(task.title, "Task title") or _check_length(task.title, TITLE_MAX, "Task title")
    if err:
        result.add(err)

    err = _check_length(task.description, DESCRIPTION_MAX, "Description")
    if err:
        result.add(err)

    result.merge(validate_time(task.due_time))

    if len(task.tag_ids or ()) > MAX_TAGS_PER_TASK:
        result.add(f"A task can have at most {MAX_TAGS_PER_TASK} tags.")

    if task.is_recurring and task.due_date is None:
        result.add("Recurring tasks need a due date.")

    return result


def _validate_named(record: Category | Tag, max_len: int, label: str) -> ValidationResult:
    result = ValidationResult.ok()
    err = _check_required(record.name, label) or _check_length(record.name, max_len, label)
    if err:
        result.add(err)
    result.merge(validate_color(record.color))
    return result


def validate_category(category: Category) -> ValidationResult:
    return _validate_named(category, CATEGORY_NAME_MAX, "Category name")


def validate_tag(tag: Tag) -> ValidationResult:
    return _validate_named(tag, TAG_NAME_MAX, "Tag name")


def validate_unique_name(
    name: str | None,
    items: Iterable[Any],
    *,
    exclude_id: str | None = None,
) -> ValidationResult:
    """Case-insensitive uniqueness of `name` among items (ignoring exclude_id)."""
    if not name:
        return ValidationResult.ok()
    normalized = name.strip().lower()
    for item in items:
        if item.id == exclude_id:
            continue
        if (item.name or "").strip().lower() == normalized:
            return ValidationResult.fail(f"An item named '{name.strip()}' already exists.")
    return ValidationResult.ok()


def validate_sort_options(field: str, direction: str) -> ValidationResult:
    result = ValidationResult.ok()
    if field not in VALID_SORT_FIELDS:
        result.add(f"Invalid sort field: {field}.")
    if direction not in VALID_SORT_DIRECTIONS:
        result.add(f"Invalid sort direction: {direction}.")
    return result


def validate_retention_days(days: Any) -> ValidationResult:
    if isinstance(days, bool) or not isinstance(days, int):
        return ValidationResult.fail("Retention days must be a whole number.")
    if not RETENTION_DAYS_MIN <= days <= RETENTION_DAYS_MAX:
        return ValidationResult.fail(
            f"Retention days must be between {RETENTION_DAYS_MIN} and {RETENTION_DAYS_MAX}."
        )
    return ValidationResult.ok()

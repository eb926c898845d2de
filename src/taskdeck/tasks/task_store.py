# src/taskdeck/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any, TypeVar

from ..core.filtering import FilterState, FilterStats, filter_stats
from ..core.models import (
    Category,
    CategoryPatch,
    Tag,
    TagPatch,
    Task,
    TaskPatch,
    ValidationResult,
    default_categories,
    default_tags,
    utc_now,
)
from ..core.ports import KeyValueRepo
from ..core.validation import validate_category, validate_tag, validate_task, validate_unique_name

logger = logging.getLogger(__name__)

KEY_TASKS = "todoTasks"
KEY_CATEGORIES = "todoCategories"
KEY_TAGS = "todoTags"
KEY_FILTER_STATE = "filterState"

DEFAULT_MAX_CATEGORIES = 5
DEFAULT_MAX_TAGS = 5

_Named = TypeVar("_Named", Category, Tag)


def _load_records(raw: Any, factory: Callable[[dict[str, Any]], Any], key: str) -> list[Any]:
    if not isinstance(raw, list):
        return []
    out: list[Any] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            out.append(factory(item))
        except Exception:
            logger.exception("Skipping malformed record under key=%s", key)
    return out


class TaskStore:
    """
    Owned task/category/tag collections backed by a key-value store.

    The store is the only place that mutates the collections. Engines get
    immutable tuples for one pass and return new lists; every mutation here
    replaces records instead of editing them in place, then persists the whole
    collection under its key.

    Lookups that fail return None/False; mutations that break a rule return a
    ValidationResult with the reasons.
    """

    def __init__(
        self,
        kv: KeyValueRepo,
        *,
        max_categories: int = DEFAULT_MAX_CATEGORIES,
        max_tags: int = DEFAULT_MAX_TAGS,
        seed_defaults: bool = True,
    ) -> None:
        self._kv = kv
        self._max_categories = int(max_categories)
        self._max_tags = int(max_tags)
        self._tasks: list[Task] = []
        self._categories: list[Category] = []
        self._tags: list[Tag] = []
        self.load(seed_defaults=seed_defaults)

    # ---- loading / saving ----

    def load(self, *, seed_defaults: bool = True) -> None:
        raw_categories = self._kv.get_json(KEY_CATEGORIES)
        raw_tags = self._kv.get_json(KEY_TAGS)

        self._tasks = _load_records(self._kv.get_json(KEY_TASKS), Task.from_dict, KEY_TASKS)
        self._categories = _load_records(raw_categories, Category.from_dict, KEY_CATEGORIES)
        self._tags = _load_records(raw_tags, Tag.from_dict, KEY_TAGS)

        # Seed only on first run (key absent), never after the user emptied a list.
        if seed_defaults and raw_categories is None:
            self._categories = default_categories()
            self._save_categories()
        if seed_defaults and raw_tags is None:
            self._tags = default_tags()
            self._save_tags()

        logger.info(
            "TaskStore loaded tasks=%d categories=%d tags=%d",
            len(self._tasks),
            len(self._categories),
            len(self._tags),
        )

    def _save_tasks(self) -> None:
        self._kv.set_json(KEY_TASKS, [t.to_dict() for t in self._tasks])

    def _save_categories(self) -> None:
        self._kv.set_json(KEY_CATEGORIES, [c.to_dict() for c in self._categories])

    def _save_tags(self) -> None:
        self._kv.set_json(KEY_TAGS, [t.to_dict() for t in self._tags])

    # ---- read-only views ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    @property
    def categories(self) -> tuple[Category, ...]:
        return tuple(self._categories)

    @property
    def tags(self) -> tuple[Tag, ...]:
        return tuple(self._tags)

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.id == task_id), None)

    def get_category(self, category_id: str) -> Category | None:
        return next((c for c in self._categories if c.id == category_id), None)

    def get_tag(self, tag_id: str) -> Tag | None:
        return next((t for t in self._tags if t.id == tag_id), None)

    def _task_index(self, task_id: str) -> int:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return -1

    # ---- tasks ----

    def add_task(self, task: Task) -> ValidationResult:
        result = validate_task(task)
        if not result:
            return result
        if self._task_index(task.id) != -1:
            return ValidationResult.fail(f"Task id already exists: {task.id}")

        self._tasks.append(task)
        self._save_tasks()
        logger.debug("Task added id=%s title=%r due=%s", task.id, task.title, task.due_date)
        return result

    def update_task(self, task_id: str, patch: TaskPatch) -> ValidationResult:
        idx = self._task_index(task_id)
        if idx == -1:
            return ValidationResult.fail(f"Task not found: {task_id}")

        updated = patch.apply_to(self._tasks[idx])
        result = validate_task(updated)
        if not result:
            return result

        self._tasks[idx] = updated
        self._save_tasks()
        logger.debug("Task updated id=%s fields=%s", task_id, sorted(patch.changes()))
        return result

    def delete_task(self, task_id: str) -> bool:
        idx = self._task_index(task_id)
        if idx == -1:
            return False
        del self._tasks[idx]
        self._save_tasks()
        logger.debug("Task deleted id=%s", task_id)
        return True

    def set_completed(self, task_id: str, completed: bool, *, now: datetime | None = None) -> Task | None:
        """
        Set the completion flag.

        completed_at is stamped only on the pending -> completed transition and
        cleared when the task is reopened.
        """
        idx = self._task_index(task_id)
        if idx == -1:
            return None

        task = self._tasks[idx]
        if task.completed == completed:
            return task

        stamp = (now or utc_now()) if completed else None
        task = replace(task, completed=completed, completed_at=stamp)
        self._tasks[idx] = task
        self._save_tasks()
        logger.debug("Task %s -> %s", task_id, "completed" if completed else "pending")
        return task

    def toggle_completed(self, task_id: str, *, now: datetime | None = None) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        return self.set_completed(task_id, not task.completed, now=now)

    def append_tasks(self, tasks: Sequence[Task]) -> int:
        """Append already-built records (e.g. generated occurrences) in one save."""
        fresh = [t for t in tasks if self._task_index(t.id) == -1]
        if not fresh:
            return 0
        self._tasks.extend(fresh)
        self._save_tasks()
        return len(fresh)

    def task_stats(self, *, now: datetime | None = None) -> FilterStats:
        return filter_stats(self._tasks, now=now)

    # ---- categories / tags ----

    def category_usage(self, category_id: str) -> int:
        return sum(1 for t in self._tasks if t.category_id == category_id)

    def tag_usage(self, tag_id: str) -> int:
        return sum(1 for t in self._tasks if tag_id in t.tag_ids)

    def _add_named(
        self,
        items: list[_Named],
        record: _Named,
        *,
        limit: int,
        label: str,
        validate: Callable[[_Named], ValidationResult],
    ) -> ValidationResult:
        if len(items) >= limit:
            return ValidationResult.fail(
                f"Limit of {limit} {label} reached. Delete an existing one to create a new one."
            )
        record = replace(record, name=(record.name or "").strip())
        result = validate(record)
        result.merge(validate_unique_name(record.name, items))
        if result:
            items.append(record)
        return result

    def _update_named(
        self,
        items: list[_Named],
        record_id: str,
        patch: CategoryPatch | TagPatch,
        *,
        validate: Callable[[_Named], ValidationResult],
    ) -> ValidationResult:
        idx = next((i for i, c in enumerate(items) if c.id == record_id), -1)
        if idx == -1:
            return ValidationResult.fail(f"Not found: {record_id}")
        updated = patch.apply_to(items[idx])
        updated = replace(updated, name=(updated.name or "").strip())
        result = validate(updated)
        result.merge(validate_unique_name(updated.name, items, exclude_id=record_id))
        if result:
            items[idx] = updated
        return result

    @staticmethod
    def _delete_named(items: list[_Named], record_id: str, usage: int, label: str) -> ValidationResult:
        if usage > 0:
            return ValidationResult.fail(
                f"This {label} is used by {usage} task(s) and cannot be deleted."
            )
        idx = next((i for i, c in enumerate(items) if c.id == record_id), -1)
        if idx == -1:
            return ValidationResult.fail(f"Not found: {record_id}")
        del items[idx]
        return ValidationResult.ok()

    def add_category(self, category: Category) -> ValidationResult:
        result = self._add_named(
            self._categories,
            category,
            limit=self._max_categories,
            label="categories",
            validate=validate_category,
        )
        if result:
            self._save_categories()
        return result

    def update_category(self, category_id: str, patch: CategoryPatch) -> ValidationResult:
        result = self._update_named(self._categories, category_id, patch, validate=validate_category)
        if result:
            self._save_categories()
        return result

    def delete_category(self, category_id: str) -> ValidationResult:
        result = self._delete_named(
            self._categories, category_id, self.category_usage(category_id), "category"
        )
        if result:
            self._save_categories()
        return result

    def add_tag(self, tag: Tag) -> ValidationResult:
        result = self._add_named(
            self._tags,
            tag,
            limit=self._max_tags,
            label="tags",
            validate=validate_tag,
        )
        if result:
            self._save_tags()
        return result

    def update_tag(self, tag_id: str, patch: TagPatch) -> ValidationResult:
        result = self._update_named(self._tags, tag_id, patch, validate=validate_tag)
        if result:
            self._save_tags()
        return result

    def delete_tag(self, tag_id: str) -> ValidationResult:
        result = self._delete_named(self._tags, tag_id, self.tag_usage(tag_id), "tag")
        if result:
            self._save_tags()
        return result

    # ---- filter state ----

    def load_filter_state(self, default: FilterState | None = None) -> FilterState:
        raw = self._kv.get_json(KEY_FILTER_STATE)
        if raw is None:
            return default if default is not None else FilterState()
        return FilterState.from_dict(raw)

    def save_filter_state(self, state: FilterState) -> None:
        self._kv.set_json(KEY_FILTER_STATE, state.to_dict())

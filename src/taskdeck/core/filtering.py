# src/taskdeck/core/filtering.py

"""
Filter engine.

apply_filters() narrows a task collection with independent predicates
(status -> category -> tag -> search, AND semantics) and returns a new,
deterministically sorted list. Inputs are read-only; nothing here raises on
missing optional fields (they simply do not match, or sort first).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Any, assert_never

from .dates import is_due_today, is_overdue, is_upcoming, local_day
from .models import Category, Priority, Tag, Task, utc_now

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30

_EPOCH_DAY = date(1970, 1, 1)


class StatusFilter(StrEnum):
    ALL = "all"
    COMPLETED = "completed"
    RECURRING = "recurring"
    TODAY = "today"
    UPCOMING = "upcoming"
    OVERDUE = "overdue"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Any) -> StatusFilter:
        # Unrecognised filters behave like "all" (no status narrowing).
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.ALL


class SortField(StrEnum):
    CREATED_AT = "createdAt"
    TITLE = "title"
    PRIORITY = "priority"
    STATUS = "status"
    CATEGORY = "category"
    TAGS = "tags"
    DUE_DATE = "dueDate"

    @classmethod
    def parse(cls, raw: Any) -> SortField:
        # Unmapped fields fall back to creation time.
        try:
            return cls(str(raw).strip())
        except ValueError:
            return cls.CREATED_AT


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, raw: Any) -> SortDirection:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.DESC


PRIORITY_RANK: dict[Priority, int] = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}

_PRIORITY_FILTERS: dict[StatusFilter, Priority] = {
    StatusFilter.LOW: Priority.LOW,
    StatusFilter.MEDIUM: Priority.MEDIUM,
    StatusFilter.HIGH: Priority.HIGH,
}

_STATUS_TITLES: dict[StatusFilter, str] = {
    StatusFilter.ALL: "All tasks",
    StatusFilter.COMPLETED: "Completed tasks",
    StatusFilter.RECURRING: "Recurring tasks",
    StatusFilter.TODAY: "Due today",
    StatusFilter.UPCOMING: "Upcoming tasks",
    StatusFilter.OVERDUE: "Overdue tasks",
    StatusFilter.LOW: "Low priority tasks",
    StatusFilter.MEDIUM: "Medium priority tasks",
    StatusFilter.HIGH: "High priority tasks",
}


@dataclass(slots=True)
class FilterState:
    """
    Current list-view filter selection.

    Owned by the UI boundary; the engine only reads it. The mutators mirror
    how the list view reacts to clicks (choosing a status clears category/tag,
    clicking the selected category/tag again deselects it).
    """

    status_filter: StatusFilter = StatusFilter.ALL
    category_filter: str | None = None
    tag_filter: str | None = None
    search_term: str = ""
    sort_field: SortField = SortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC
    completed_retention_days: int = DEFAULT_RETENTION_DAYS

    def set_status(self, status: StatusFilter | str) -> None:
        self.status_filter = StatusFilter.parse(status)
        self.category_filter = None
        self.tag_filter = None

    def toggle_category(self, category_id: str) -> None:
        self.category_filter = None if self.category_filter == category_id else category_id
        self.status_filter = StatusFilter.ALL

    def toggle_tag(self, tag_id: str) -> None:
        self.tag_filter = None if self.tag_filter == tag_id else tag_id
        self.status_filter = StatusFilter.ALL

    def set_search(self, term: str | None) -> None:
        self.search_term = term or ""

    def set_sort(self, sort_field: SortField | str, direction: SortDirection | str | None = None) -> None:
        self.sort_field = SortField.parse(sort_field)
        if direction is not None:
            self.sort_direction = SortDirection.parse(direction)

    def clear(self) -> None:
        self.status_filter = StatusFilter.ALL
        self.category_filter = None
        self.tag_filter = None

    def has_active_filters(self) -> bool:
        return self.category_filter is not None or self.tag_filter is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "statusFilter": self.status_filter.value,
            "categoryFilter": self.category_filter,
            "tagFilter": self.tag_filter,
            "searchTerm": self.search_term,
            "sortField": self.sort_field.value,
            "sortDirection": self.sort_direction.value,
            "completedRetentionDays": self.completed_retention_days,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> FilterState:
        if not isinstance(raw, dict):
            return cls()
        try:
            days = int(raw.get("completedRetentionDays", DEFAULT_RETENTION_DAYS))
        except (TypeError, ValueError):
            days = DEFAULT_RETENTION_DAYS
        return cls(
            status_filter=StatusFilter.parse(raw.get("statusFilter", "all")),
            category_filter=raw.get("categoryFilter") or None,
            tag_filter=raw.get("tagFilter") or None,
            search_term=str(raw.get("searchTerm") or ""),
            sort_field=SortField.parse(raw.get("sortField", "createdAt")),
            sort_direction=SortDirection.parse(raw.get("sortDirection", "desc")),
            completed_retention_days=max(0, days),
        )


@dataclass(frozen=True, slots=True)
class FilterStats:
    total: int
    completed: int
    pending: int
    overdue: int
    due_today: int
    upcoming: int
    recurring: int


@dataclass(slots=True)
class _Lookup:
    """Id -> display name tables built once per pass."""

    categories: dict[str, str] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, categories: Iterable[Category], tags: Iterable[Tag]) -> _Lookup:
        return cls(
            categories={c.id: c.name for c in categories},
            tags={t.id: t.name for t in tags},
        )

    def category_name(self, task: Task) -> str:
        return self.categories.get(task.category_id, "")

    def tag_names(self, task: Task) -> list[str]:
        return [self.tags[t] for t in task.tag_ids if t in self.tags]


# ---- status ----


def _within_retention(task: Task, days: int, now: datetime) -> bool:
    if days <= 0:
        return True
    cutoff = now - timedelta(days=days)
    stamp = task.completed_at or task.created_at
    return stamp >= cutoff


def _status_predicate(state: FilterState, today: date, now: datetime) -> Callable[[Task], bool]:
    status = StatusFilter.parse(state.status_filter)

    if status == StatusFilter.COMPLETED:
        days = int(state.completed_retention_days or 0)
        return lambda t: t.completed and _within_retention(t, days, now)
    if status == StatusFilter.RECURRING:
        return lambda t: t.is_recurring
    if status == StatusFilter.TODAY:
        return lambda t: is_due_today(t, today)
    if status == StatusFilter.UPCOMING:
        return lambda t: is_upcoming(t, today)
    if status == StatusFilter.OVERDUE:
        return lambda t: is_overdue(t, today)
    if status in (StatusFilter.LOW, StatusFilter.MEDIUM, StatusFilter.HIGH):
        wanted = _PRIORITY_FILTERS[status]
        return lambda t: t.priority == wanted
    if status == StatusFilter.ALL:
        return lambda t: True
    assert_never(status)


def matches_search(task: Task, term: str, lookup: _Lookup) -> bool:
    needle = term.lower()
    if needle in (task.title or "").lower():
        return True
    if needle in (task.description or "").lower():
        return True
    if needle in lookup.category_name(task).lower():
        return True
    return any(needle in name.lower() for name in lookup.tag_names(task))


# ---- sorting ----


def _sort_key(sort_field: SortField, lookup: _Lookup) -> Callable[[Task], Any]:
    if sort_field == SortField.TITLE:
        return lambda t: (t.title or "").lower()
    if sort_field == SortField.CATEGORY:
        return lambda t: lookup.category_name(t).lower()
    if sort_field == SortField.PRIORITY:
        return lambda t: PRIORITY_RANK.get(t.priority, 0)
    if sort_field == SortField.STATUS:
        return lambda t: 1 if t.completed else 0
    if sort_field == SortField.TAGS:
        # Unresolved tag ids contribute an empty name.
        return lambda t: ",".join(sorted(lookup.tags.get(tid, "").lower() for tid in t.tag_ids))
    if sort_field == SortField.DUE_DATE:
        # Missing due dates sort as the epoch start.
        return lambda t: (t.due_date - _EPOCH_DAY).days if t.due_date else 0
    if sort_field == SortField.CREATED_AT:
        return lambda t: t.created_at.timestamp()
    assert_never(sort_field)


def sort_tasks(
    tasks: Iterable[Task],
    state: FilterState,
    categories: Iterable[Category] = (),
    tags: Iterable[Tag] = (),
) -> list[Task]:
    lookup = _Lookup.build(categories, tags)
    return _sorted(list(tasks), state, lookup)


def _sorted(tasks: list[Task], state: FilterState, lookup: _Lookup) -> list[Task]:
    key = _sort_key(SortField.parse(state.sort_field), lookup)
    descending = SortDirection.parse(state.sort_direction) == SortDirection.DESC
    # sorted() is stable in both directions: ties keep their input order.
    return sorted(tasks, key=key, reverse=descending)


# ---- public API ----


def apply_filters(
    tasks: Iterable[Task],
    state: FilterState,
    categories: Sequence[Category] = (),
    tags: Sequence[Tag] = (),
    *,
    now: datetime | None = None,
) -> list[Task]:
    """
    Filter and sort tasks for the list view.

    Order of application:
    1. status filter (completed tasks are hidden unless status == completed)
    2. category filter
    3. tag filter
    4. search term (title, description, category name, tag names)
    5. stable sort by state.sort_field / state.sort_direction
    """
    now = now or utc_now()
    today = local_day(now)
    lookup = _Lookup.build(categories, tags)

    status_ok = _status_predicate(state, today, now)
    show_completed = StatusFilter.parse(state.status_filter) == StatusFilter.COMPLETED

    predicates: list[Callable[[Task], bool]] = [status_ok]
    if not show_completed:
        predicates.append(lambda t: not t.completed)
    if state.category_filter:
        cat = state.category_filter
        predicates.append(lambda t: t.category_id == cat)
    if state.tag_filter:
        tag = state.tag_filter
        predicates.append(lambda t: tag in t.tag_ids)
    if state.search_term:
        term = state.search_term
        predicates.append(lambda t: matches_search(t, term, lookup))

    filtered = [t for t in tasks if all(p(t) for p in predicates)]
    logger.debug(
        "apply_filters status=%s category=%s tag=%s search=%r -> %d",
        state.status_filter,
        state.category_filter,
        state.tag_filter,
        state.search_term,
        len(filtered),
    )
    return _sorted(filtered, state, lookup)


def section_title(
    state: FilterState,
    categories: Iterable[Category] = (),
    tags: Iterable[Tag] = (),
) -> str:
    status = StatusFilter.parse(state.status_filter)
    title = _STATUS_TITLES[status]

    parts: list[str] = []
    if state.category_filter:
        cat = next((c for c in categories if c.id == state.category_filter), None)
        if cat:
            parts.append(cat.name)
    if state.tag_filter:
        tag = next((t for t in tags if t.id == state.tag_filter), None)
        if tag:
            parts.append(tag.name)

    if not parts:
        return title
    if status == StatusFilter.ALL:
        return f"Tasks - {' + '.join(parts)}"
    return f"{title} - {' + '.join(parts)}"


def filter_stats(tasks: Iterable[Task], *, now: datetime | None = None) -> FilterStats:
    today = local_day(now or utc_now())
    items = list(tasks)
    completed = sum(1 for t in items if t.completed)
    return FilterStats(
        total=len(items),
        completed=completed,
        pending=len(items) - completed,
        overdue=sum(1 for t in items if is_overdue(t, today)),
        due_today=sum(1 for t in items if is_due_today(t, today)),
        upcoming=sum(1 for t in items if is_upcoming(t, today)),
        recurring=sum(1 for t in items if t.is_recurring),
    )

# tests/test_filtering.py

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta

import pytest

from taskdeck.core.filtering import (
    FilterState,
    SortDirection,
    SortField,
    StatusFilter,
    apply_filters,
    filter_stats,
    section_title,
    sort_tasks,
)
from taskdeck.core.models import Priority, Task, default_categories, default_tags

from .fakes import NOW, TODAY

CATS = default_categories()
TAGS = default_tags()


def _task(task_id: str, **kw) -> Task:
    kw.setdefault("created_at", NOW)
    return Task(id=task_id, title=kw.pop("title", task_id), **kw)


def _ids(tasks) -> list[str]:
    return [t.id for t in tasks]


def _run(tasks, **state_kw) -> list[str]:
    return _ids(apply_filters(tasks, FilterState(**state_kw), CATS, TAGS, now=NOW))


def test_all_hides_completed_tasks() -> None:
    a = _task("A", category_id="work")
    b = _task("B", category_id="work", completed=True, completed_at=NOW)

    assert _run([a, b], status_filter=StatusFilter.ALL) == ["A"]


@pytest.mark.parametrize("status", [s for s in StatusFilter if s != StatusFilter.COMPLETED])
def test_no_completed_task_outside_completed_view(status: StatusFilter) -> None:
    tasks = [
        _task("p1", due_date=TODAY, priority=Priority.HIGH, is_recurring=True),
        _task("c1", due_date=TODAY, priority=Priority.HIGH, is_recurring=True, completed=True, completed_at=NOW),
        _task("c2", due_date=TODAY - timedelta(days=3), completed=True, completed_at=NOW),
        _task("c3", priority=Priority.LOW, completed=True, completed_at=NOW),
    ]
    out = apply_filters(tasks, FilterState(status_filter=status), CATS, TAGS, now=NOW)
    assert not any(t.completed for t in out)


def test_completed_view_respects_retention_window() -> None:
    old = _task("old", completed=True, completed_at=NOW - timedelta(days=40))
    recent = _task("recent", completed=True, completed_at=NOW - timedelta(days=10))
    pending = _task("pending")

    out = _run(
        [old, recent, pending],
        status_filter=StatusFilter.COMPLETED,
        completed_retention_days=30,
    )
    assert out == ["recent"]


def test_category_and_tag_filters_intersect() -> None:
    tasks = [
        _task("work+urgent", category_id="work", tag_ids=("urgent",)),
        _task("work", category_id="work"),
        _task("personal+urgent", category_id="personal", tag_ids=("urgent", "meeting")),
        _task("work+urgent done", category_id="work", tag_ids=("urgent",), completed=True, completed_at=NOW),
        _task("work+both", category_id="work", tag_ids=("meeting", "urgent")),
    ]
    out = _run(tasks, category_filter="work", tag_filter="urgent")

    expected = {
        t.id for t in tasks if t.category_id == "work" and "urgent" in t.tag_ids and not t.completed
    }
    assert set(out) == expected == {"work+urgent", "work+both"}


def test_status_filters_by_due_date_and_priority() -> None:
    tasks = [
        _task("today", due_date=TODAY),
        _task("tomorrow", due_date=TODAY + timedelta(days=1)),
        _task("week", due_date=TODAY + timedelta(days=7)),
        _task("later", due_date=TODAY + timedelta(days=8)),
        _task("late", due_date=TODAY - timedelta(days=1), priority=Priority.HIGH),
        _task("nodate", priority=Priority.LOW),
    ]

    assert _run(tasks, status_filter=StatusFilter.TODAY) == ["today"]
    assert set(_run(tasks, status_filter=StatusFilter.UPCOMING)) == {"tomorrow", "week"}
    assert _run(tasks, status_filter=StatusFilter.OVERDUE) == ["late"]
    assert _run(tasks, status_filter=StatusFilter.HIGH) == ["late"]
    assert _run(tasks, status_filter=StatusFilter.LOW) == ["nodate"]


def test_search_matches_title_description_and_resolved_names() -> None:
    tasks = [
        _task("t1", title="Write report"),
        _task("t2", title="Call", description="about the REPORT draft"),
        _task("t3", title="Gym", category_id="study"),
        _task("t4", title="Sync", tag_ids=("meeting",)),
        _task("t5", title="Nothing"),
    ]

    assert set(_run(tasks, search_term="report")) == {"t1", "t2"}
    assert _run(tasks, search_term="STUD") == ["t3"]
    assert _run(tasks, search_term="meet") == ["t4"]


def test_unknown_status_text_falls_back_to_all() -> None:
    state = FilterState.from_dict({"statusFilter": "bogus", "sortField": "nope"})
    assert state.status_filter == StatusFilter.ALL
    assert state.sort_field == SortField.CREATED_AT


@pytest.mark.parametrize("field", list(SortField))
def test_sort_directions_are_mirror_images(field: SortField) -> None:
    names = ["alpha", "bravo", "charlie"]
    tasks = [
        _task(
            f"id{i}",
            title=names[i],
            category_id=CATS[i].id,
            tag_ids=(TAGS[i].id,),
            priority=[Priority.LOW, Priority.MEDIUM, Priority.HIGH][i],
            due_date=date(2024, 2, 1) + timedelta(days=i),
            created_at=NOW + timedelta(minutes=i),
        )
        for i in range(3)
    ]
    if field == SortField.STATUS:
        # Only two distinct values; keep the input tie-free.
        tasks = [tasks[0], replace(tasks[1], completed=True)]

    asc = sort_tasks(tasks, FilterState(sort_field=field, sort_direction=SortDirection.ASC), CATS, TAGS)
    desc = sort_tasks(tasks, FilterState(sort_field=field, sort_direction=SortDirection.DESC), CATS, TAGS)

    assert _ids(asc) == list(reversed(_ids(desc)))


def test_sort_ties_keep_input_order() -> None:
    tasks = [_task("b", title="same"), _task("a", title="same"), _task("c", title="Same")]
    out = sort_tasks(tasks, FilterState(sort_field=SortField.TITLE, sort_direction=SortDirection.ASC))
    assert _ids(out) == ["b", "a", "c"]


def test_missing_due_date_sorts_first_ascending() -> None:
    tasks = [_task("dated", due_date=date(2024, 3, 1)), _task("undated")]
    out = sort_tasks(tasks, FilterState(sort_field=SortField.DUE_DATE, sort_direction=SortDirection.ASC))
    assert _ids(out) == ["undated", "dated"]


def test_filter_state_mutators() -> None:
    state = FilterState()
    state.toggle_category("work")
    state.toggle_tag("urgent")
    assert state.has_active_filters()

    state.set_status(StatusFilter.TODAY)
    assert state.category_filter is None and state.tag_filter is None

    state.toggle_category("work")
    assert state.status_filter == StatusFilter.ALL
    state.toggle_category("work")
    assert state.category_filter is None


def test_filter_state_round_trips_through_storage_shape() -> None:
    state = FilterState(status_filter=StatusFilter.OVERDUE, search_term="x", completed_retention_days=7)
    raw = state.to_dict()
    assert raw["statusFilter"] == "overdue"
    assert raw["completedRetentionDays"] == 7
    assert FilterState.from_dict(raw) == state


def test_section_title() -> None:
    assert section_title(FilterState(), CATS, TAGS) == "All tasks"
    assert section_title(FilterState(category_filter="work", tag_filter="urgent"), CATS, TAGS) == (
        "Tasks - Work + Urgent"
    )


def test_filter_stats_counts() -> None:
    tasks = [
        _task("a", due_date=TODAY),
        _task("b", due_date=TODAY - timedelta(days=2)),
        _task("c", completed=True, completed_at=NOW, due_date=TODAY - timedelta(days=2)),
        _task("d", due_date=TODAY + timedelta(days=3), is_recurring=True),
    ]
    stats = filter_stats(tasks, now=NOW)

    assert (stats.total, stats.completed, stats.pending) == (4, 1, 3)
    assert (stats.overdue, stats.due_today, stats.upcoming, stats.recurring) == (1, 1, 1, 1)


def test_zero_retention_days_shows_every_completed_task() -> None:
    ancient = _task("ancient", completed=True, completed_at=NOW - timedelta(days=3650))
    recent = _task("recent", completed=True, completed_at=NOW)

    out = _run([ancient, recent], status_filter=StatusFilter.COMPLETED, completed_retention_days=0)
    assert set(out) == {"ancient", "recent"}


def test_retention_falls_back_to_created_at_without_completed_at() -> None:
    old = _task("old", completed=True, created_at=NOW - timedelta(days=40))
    fresh = _task("fresh", completed=True, created_at=NOW - timedelta(days=2))

    out = _run([old, fresh], status_filter=StatusFilter.COMPLETED, completed_retention_days=30)
    assert out == ["fresh"]

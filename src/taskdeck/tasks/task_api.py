# src/taskdeck/tasks/task_api.py

from __future__ import annotations

import logging
from typing import Any

from ..core.filtering import apply_filters, section_title
from ..core.models import Task, TaskPatch, ValidationResult
from ..core.reconcile import ReconcileResult
from ..core.state import AppState
from .task_scheduler import generate_after_complete

logger = logging.getLogger(__name__)


def _page_size(state: AppState) -> int:
    return max(1, int(getattr(state.settings, "page_size", 25)))


def visible_tasks(state: AppState) -> list[Task]:
    """Filtered + sorted tasks, cut to the page size unless expanded."""
    store = state.store
    filtered = apply_filters(store.tasks, state.filter_state, store.categories, store.tags)
    limit = len(filtered) if state.show_all else _page_size(state)
    state.hidden_count = max(0, len(filtered) - limit)
    return filtered[:limit]


def refresh_view(state: AppState) -> ReconcileResult:
    """
    Re-filter and reconcile the list view.

    Category/tag names are refreshed first so replaced and added rows use the
    current names.
    """
    state.view.set_lookups(state.store.categories, state.store.tags)
    result = state.reconciler.reconcile(visible_tasks(state))
    if result.fallback:
        logger.warning("List view fell back to a full rebuild: %s", result.error)
    return result


def render_list(state: AppState) -> str:
    title = section_title(state.filter_state, state.store.categories, state.store.tags)
    return state.view.render(title, hidden=state.hidden_count)


def create_task(state: AppState, title: str, **fields: Any) -> tuple[Task, ValidationResult]:
    """
    Convenience helper: build and store a new task.

    `fields` are Task field names (category_id, tag_ids, priority, due_date, ...).
    """
    patch = TaskPatch(title=title, **fields)
    task = patch.apply_to(Task.new(title=title))
    result = state.store.add_task(task)
    if result:
        logger.info("Task created id=%s title=%r", task.id, task.title)
    return task, result


def edit_task(state: AppState, task_id: str, **fields: Any) -> ValidationResult:
    return state.store.update_task(task_id, TaskPatch(**fields))


def toggle_complete(state: AppState, task_id: str) -> Task | None:
    """
    Flip the completion flag; completing a recurring task spawns its next
    occurrence (at most one per series step).
    """
    before = state.store.get_task(task_id)
    if before is None:
        return None

    task = state.store.toggle_completed(task_id)
    if task is None:
        return None

    if not before.completed and task.completed and task.is_recurring:
        try:
            generate_after_complete(state.store, task)
        except Exception:
            logger.exception("Failed to generate next occurrence for task_id=%s", task_id)
    return task


def persist_filter_state(state: AppState) -> None:
    try:
        state.store.save_filter_state(state.filter_state)
    except Exception:
        logger.exception("Failed to save filter state.")

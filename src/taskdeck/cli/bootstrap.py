# src/taskdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the key-value store, TaskStore, list view and reconciler into AppState,
- restores the last filter selection (or the configured defaults).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_view import ConsoleListView
from ..core.filtering import FilterState, SortDirection, SortField
from ..core.reconcile import Reconciler
from ..core.state import AppState
from ..tasks.kv_store import KeyValueStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_path.parent.mkdir(parents=True, exist_ok=True)


def default_filter_state(settings) -> FilterState:
    """Filter selection used when nothing was saved yet."""
    return FilterState(
        sort_field=SortField.parse(getattr(settings, "sort_field", "createdAt")),
        sort_direction=SortDirection.parse(getattr(settings, "sort_direction", "desc")),
        completed_retention_days=int(getattr(settings, "completed_retention_days", 30)),
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(
        KeyValueStore(settings.store_path),
        max_categories=settings.max_categories,
        max_tags=settings.max_tags,
    )
    view = ConsoleListView()

    try:
        filter_state = store.load_filter_state(default_filter_state(settings))
    except Exception:
        logger.exception("Failed to load saved filter state, using defaults.")
        filter_state = default_filter_state(settings)

    return AppState(
        settings=settings,
        store=store,
        view=view,
        reconciler=Reconciler(view),
        filter_state=filter_state,
    )

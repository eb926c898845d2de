# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdeck.cli.bootstrap import create_initial_state
from taskdeck.core.state import AppState
from taskdeck.tasks.kv_store import KeyValueStore
from taskdeck.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskdeck-test",
        log_level="DEBUG",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        store_path=tmp_path / "taskdeck.sqlite3",
        # List view
        completed_retention_days=30,
        sort_field="createdAt",
        sort_direction="desc",
        page_size=25,
        # Limits
        max_categories=5,
        max_tags=5,
        # Recurrence
        recurrence_interval_seconds=0.01,
        recurrence_on_start=False,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    """
    TaskStore over a real SQLite file.

    Persistence is part of what we want to test, so no fake here.
    """
    return TaskStore(KeyValueStore(settings.store_path))


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    return create_initial_state(settings=settings)

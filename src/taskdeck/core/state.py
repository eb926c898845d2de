# src/taskdeck/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..connectors.console_view import ConsoleListView
from ..tasks.task_store import TaskStore
from .filtering import FilterState
from .reconcile import Reconciler


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    store: TaskStore
    view: ConsoleListView
    reconciler: Reconciler
    filter_state: FilterState = field(default_factory=FilterState)

    # Pagination: the list shows settings.page_size rows unless expanded.
    show_all: bool = False
    hidden_count: int = 0

    # Shared by the console thread and the background recurrence runner.
    lock: threading.RLock = field(default_factory=threading.RLock)

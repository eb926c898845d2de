# src/taskdeck/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The engines depend on Protocols instead of concrete implementations.
This keeps the view layer and storage swappable and makes testing easier.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from .models import Category, Tag, Task


class ViewRenderer(Protocol):
    """
    View-side port: how reconciliation patches reach the list view.

    The renderer decides how to realise each operation (terminal rows, DOM
    nodes, widgets). Entries that are not mentioned must be left untouched.
    """

    def add(self, task: Task) -> None:
        """Append a view entry for a task that was not shown before."""
        ...

    def replace(self, task: Task) -> None:
        """Swap the entry for task.id in place (position kept)."""
        ...

    def remove(self, task_id: str) -> None: ...

    def rebuild(self, tasks: Sequence[Task]) -> None:
        """Drop every entry and render tasks from scratch, in order."""
        ...


class KeyValueRepo(Protocol):
    def get_json(self, key: str, default: Any = None) -> Any: ...
    def set_json(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...


class TaskRepo(Protocol):
    # Read-only views handed to the engines for one pass.
    @property
    def tasks(self) -> tuple[Task, ...]: ...

    @property
    def categories(self) -> tuple[Category, ...]: ...

    @property
    def tags(self) -> tuple[Tag, ...]: ...

    def get_task(self, task_id: str) -> Task | None: ...

    # Recurrence scheduler API
    def append_tasks(self, tasks: Sequence[Task]) -> int: ...

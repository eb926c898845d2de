# src/taskdeck/connectors/console_view.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..core.models import Category, Priority, Tag, Task

logger = logging.getLogger(__name__)

_PRIORITY_MARK = {Priority.HIGH: "!!!", Priority.MEDIUM: "!!", Priority.LOW: "!"}


def format_task_line(task: Task, categories: dict[str, str], tags: dict[str, str]) -> str:
    box = "[x]" if task.completed else "[ ]"
    parts = [box, task.title]

    cat = categories.get(task.category_id)
    if cat:
        parts.append(f"({cat})")
    for tid in task.tag_ids:
        name = tags.get(tid)
        if name:
            parts.append(f"#{name}")

    parts.append(_PRIORITY_MARK.get(task.priority, ""))

    if task.due_date:
        due = task.due_date.isoformat()
        if task.due_time:
            due = f"{due} {task.due_time}"
        parts.append(f"due {due}")
    if task.is_recurring:
        parts.append(f"~{task.recurrence_type.value}")

    return " ".join(p for p in parts if p)


@dataclass(slots=True)
class ConsoleListView:
    """
    Terminal list view; the ViewRenderer used by the console connector.

    Rows are kept as an ordered id -> line mapping. Patch operations touch only
    the rows they name; `version` of a row counts how often it was redrawn,
    which makes "unchanged rows were left alone" observable.
    """

    empty_message: str = "No tasks found."
    _rows: dict[str, str] = field(default_factory=dict)
    _versions: dict[str, int] = field(default_factory=dict)
    _category_names: dict[str, str] = field(default_factory=dict)
    _tag_names: dict[str, str] = field(default_factory=dict)

    def set_lookups(self, categories: Iterable[Category], tags: Iterable[Tag]) -> None:
        self._category_names = {c.id: c.name for c in categories}
        self._tag_names = {t.id: t.name for t in tags}

    def _line(self, task: Task) -> str:
        return format_task_line(task, self._category_names, self._tag_names)

    # ---- ViewRenderer ----

    def add(self, task: Task) -> None:
        self._rows.pop(task.id, None)
        self._rows[task.id] = self._line(task)
        self._versions[task.id] = 1

    def replace(self, task: Task) -> None:
        if task.id not in self._rows:
            raise KeyError(f"no row for task {task.id}")
        self._rows[task.id] = self._line(task)
        self._versions[task.id] = self._versions.get(task.id, 0) + 1

    def remove(self, task_id: str) -> None:
        self._rows.pop(task_id, None)
        self._versions.pop(task_id, None)

    def rebuild(self, tasks: Sequence[Task]) -> None:
        self._rows.clear()
        self._versions.clear()
        for task in tasks:
            self.add(task)
        logger.debug("Console view rebuilt rows=%d", len(self._rows))

    # ---- inspection ----

    @property
    def ids(self) -> list[str]:
        return list(self._rows)

    def version(self, task_id: str) -> int:
        return self._versions.get(task_id, 0)

    def render(self, title: str = "", *, hidden: int = 0) -> str:
        lines = [title] if title else []
        if not self._rows:
            lines.append(f"  {self.empty_message}")
        for i, line in enumerate(self._rows.values(), start=1):
            lines.append(f"  {i:>2}. {line}")
        if hidden > 0:
            lines.append(f"  ... {hidden} more (use /more to show all)")
        return "\n".join(lines)

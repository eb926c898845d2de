# src/taskdeck/core/reconcile.py

from __future__ import annotations

"""
Incremental list reconciliation.

Given the snapshot of what the view currently shows and the freshly filtered
list, compute which entries to add, replace and remove, then push that patch
through a ViewRenderer. Unchanged entries are never touched, so any transient
view state attached to them (focus, selection, animation) survives a pass.

Known limitation: added entries are appended at the end of the view, not at
their sorted position. A full rebuild (fallback or reset) restores order.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from .models import Task
from .ports import ViewRenderer

logger = logging.getLogger(__name__)

# Fields whose change makes a rendered entry stale.
TRACKED_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "completed",
    "priority",
    "category_id",
    "tag_ids",
    "due_date",
    "due_time",
    "is_recurring",
    "recurrence_type",
    "recurrence_data",
)

Snapshot = Mapping[str, Task]


@dataclass(frozen=True, slots=True)
class Patch:
    added: tuple[Task, ...] = ()
    modified: tuple[Task, ...] = ()
    removed_ids: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.removed_ids)


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """
    Outcome of one reconciliation pass.

    fallback=True means the incremental path failed and the view was rebuilt
    from the full list; `error` carries the reason so the caller can log it.
    """

    patch: Patch
    fallback: bool = False
    error: str | None = None


def snapshot_of(tasks: Iterable[Task]) -> dict[str, Task]:
    # Later duplicates win, matching how the view keys entries by id.
    return {t.id: t for t in tasks}


def has_changed(current: Task, previous: Task) -> bool:
    for name in TRACKED_FIELDS:
        a = getattr(current, name, None)
        b = getattr(previous, name, None)
        if name == "tag_ids":
            # Order-insensitive: reordering tags does not restyle the entry.
            if set(a or ()) != set(b or ()):
                return True
        elif a != b:
            return True
    return False


def diff(previous: Snapshot, current: Sequence[Task]) -> Patch:
    """
    Compare a rendered snapshot against the new ordered list.

    added/modified follow the order of `current`; removed_ids follow the
    order of `previous`.
    """
    current_map = snapshot_of(current)

    added: list[Task] = []
    modified: list[Task] = []
    for task_id, task in current_map.items():
        last = previous.get(task_id)
        if last is None:
            added.append(task)
        elif has_changed(task, last):
            modified.append(task)

    removed = [task_id for task_id in previous if task_id not in current_map]

    return Patch(added=tuple(added), modified=tuple(modified), removed_ids=tuple(removed))


def apply_patch(renderer: ViewRenderer, patch: Patch) -> None:
    """Removals first, then in-place replacements, then appends."""
    for task_id in patch.removed_ids:
        renderer.remove(task_id)
    for task in patch.modified:
        renderer.replace(task)
    for task in patch.added:
        renderer.add(task)


@dataclass(slots=True)
class Reconciler:
    """
    Owns the "last rendered" snapshot for one view.

    Not thread-safe; one pass runs to completion before the next starts.
    """

    renderer: ViewRenderer
    _snapshot: dict[str, Task] = field(default_factory=dict)

    @property
    def snapshot(self) -> Mapping[str, Task]:
        return dict(self._snapshot)

    def reset(self) -> None:
        """Forget the snapshot; the next pass treats every task as added."""
        self._snapshot.clear()

    def reconcile(self, tasks: Sequence[Task]) -> ReconcileResult:
        current = list(tasks)
        try:
            patch = diff(self._snapshot, current)
            apply_patch(self.renderer, patch)
        except Exception as e:
            logger.exception("Incremental update failed; rebuilding view (%d tasks).", len(current))
            self._snapshot.clear()
            self.renderer.rebuild(current)
            self._snapshot = snapshot_of(current)
            full = Patch(added=tuple(self._snapshot.values()))
            return ReconcileResult(patch=full, fallback=True, error=str(e) or type(e).__name__)

        self._snapshot = snapshot_of(current)
        if not patch.is_empty:
            logger.debug(
                "Reconciled view: +%d ~%d -%d",
                len(patch.added),
                len(patch.modified),
                len(patch.removed_ids),
            )
        return ReconcileResult(patch=patch)

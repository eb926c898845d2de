# src/taskdeck/tasks/task_scheduler.py

from __future__ import annotations

"""
Recurrence scheduler.

Decides when a recurring series needs its next occurrence and appends it to
the store:
- on load / periodically: run_recurrence_pass() over every root task,
- on completion: generate_after_complete() for the task just completed.

The date arithmetic itself lives in core.recurrence; this module owns only the
generation policy and the store writes.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager, nullcontext
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from ..core.dates import today as local_today
from ..core.models import Task, generate_id, utc_now
from ..core.ports import TaskRepo
from ..core.recurrence import next_occurrence

logger = logging.getLogger(__name__)


def _children_of(root_id: str, tasks: Iterable[Task]) -> list[Task]:
    return [t for t in tasks if t.parent_recurring_id == root_id]


def has_future_child(root: Task, tasks: Iterable[Task], today: date) -> bool:
    return any(c.due_date is not None and c.due_date > today for c in _children_of(root.id, tasks))


def _already_generated(root_id: str, tasks: Iterable[Task], due: date) -> bool:
    # A child on or after the candidate date means this step of the series exists.
    return any(c.due_date is not None and c.due_date >= due for c in _children_of(root_id, tasks))


def needs_next_occurrence(task: Task, tasks: Sequence[Task], today: date) -> bool:
    """
    Generation trigger for a root recurring task.

    True when the root is completed and due today-or-earlier, or still pending
    and overdue, and none of its generated children is due after today.
    """
    if not task.is_recurring or not task.is_root or task.due_date is None:
        return False

    due = task.due_date
    triggered = (task.completed and due <= today) or (not task.completed and due < today)
    if not triggered:
        return False

    return not has_future_child(task, tasks, today)


def build_occurrence(template: Task, due: date, *, root_id: str, now: datetime | None = None) -> Task:
    """Copy the template into a fresh, pending occurrence pointing at the root."""
    return replace(
        template,
        id=generate_id("task"),
        due_date=due,
        completed=False,
        completed_at=None,
        created_at=now or utc_now(),
        parent_recurring_id=root_id,
    )


def plan_recurring_occurrences(
    tasks: Sequence[Task],
    today: date,
    *,
    now: datetime | None = None,
) -> list[Task]:
    """Occurrences one scheduling pass would create (pure; nothing is stored)."""
    planned: list[Task] = []
    for task in tasks:
        if not needs_next_occurrence(task, tasks, today):
            continue

        due = next_occurrence(task)
        if due is None:
            logger.debug("Recurring task %s has no next date (type=%s)", task.id, task.recurrence_type)
            continue

        if _already_generated(task.id, tasks, due):
            continue

        planned.append(build_occurrence(task, due, root_id=task.id, now=now))
    return planned


def run_recurrence_pass(store: TaskRepo, *, today: date | None = None) -> list[Task]:
    """
    Append the next occurrence of every qualifying root task.

    Idempotent: a second pass right after the first creates nothing, because
    each generated child now blocks its root.
    """
    today = today or local_today()
    planned = plan_recurring_occurrences(store.tasks, today)
    if not planned:
        return []

    store.append_tasks(planned)
    for t in planned:
        logger.info("Generated occurrence id=%s root=%s due=%s", t.id, t.parent_recurring_id, t.due_date)
    return planned


def generate_after_complete(store: TaskRepo, task: Task) -> Task | None:
    """
    Create the next occurrence right after `task` was completed.

    A root generates from itself. A child uses its root as the template but
    its own due date as the base, and the new occurrence still points at the
    root (series are one level deep).
    """
    if not task.is_recurring or not task.completed:
        return None

    if task.is_root:
        template = task
        root_id = task.id
    else:
        root_id = task.parent_recurring_id or ""
        root = store.get_task(root_id)
        if root is None:
            logger.warning("Root %s of occurrence %s is gone; not generating.", root_id, task.id)
            return None
        template = replace(root, due_date=task.due_date)

    due = next_occurrence(template)
    if due is None:
        return None

    tasks = store.tasks
    if _already_generated(root_id, tasks, due):
        logger.debug("Occurrence for root=%s due=%s already exists", root_id, due)
        return None

    occurrence = build_occurrence(template, due, root_id=root_id)
    store.append_tasks([occurrence])
    logger.info("Generated occurrence id=%s root=%s due=%s", occurrence.id, root_id, due)
    return occurrence


async def run_recurrence_scheduler(
        store: TaskRepo,
        *,
        interval_seconds: float = 3600.0,
        lock: AbstractContextManager[Any] | None = None,
) -> None:
    """
    Simple polling loop.

    Every interval_seconds, run one recurrence pass against the store. A pass
    runs to completion between awaits, so it never interleaves with another
    pass on the same store. When the store is shared with another thread (the
    console), pass that thread's lock; each pass then holds it.
    Failures are logged and the loop continues.

    To stop the scheduler, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    guard = lock if lock is not None else nullcontext()

    while True:
        try:
            with guard:
                created = run_recurrence_pass(store)
            if created:
                logger.info("Recurrence pass created %d occurrence(s)", len(created))
        except Exception:
            logger.exception("run_recurrence_pass failed")

        await asyncio.sleep(sleep_s)

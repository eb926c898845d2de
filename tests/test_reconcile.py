# tests/test_reconcile.py

from __future__ import annotations

import random
from dataclasses import replace

import pytest

from taskdeck.connectors.console_view import ConsoleListView
from taskdeck.core.models import Priority, Task
from taskdeck.core.reconcile import Reconciler, apply_patch, diff, has_changed, snapshot_of

from .fakes import NOW, FlakyRenderer, RecordingRenderer


def _task(task_id: str, title: str = "x", **kw) -> Task:
    return Task(id=task_id, title=title, created_at=NOW, **kw)


def test_changed_title_is_reported_as_modified() -> None:
    prev = snapshot_of([_task("A", "x")])
    patch = diff(prev, [_task("A", "y")])

    assert [t.id for t in patch.modified] == ["A"]
    assert patch.added == ()
    assert patch.removed_ids == ()


def test_deleted_task_is_reported_as_removed() -> None:
    a, b = _task("A"), _task("B")
    patch = diff(snapshot_of([a, b]), [a])

    assert patch.removed_ids == ("B",)
    assert patch.modified == ()
    assert patch.added == ()


def test_identical_lists_produce_empty_patch() -> None:
    tasks = [_task("A"), _task("B", priority=Priority.HIGH)]
    patch = diff(snapshot_of(tasks), [replace(t) for t in tasks])
    assert patch.is_empty


def test_tag_order_does_not_count_as_change() -> None:
    before = _task("A", tag_ids=("urgent", "work"))
    after = replace(before, tag_ids=("work", "urgent"))

    assert not has_changed(after, before)
    assert has_changed(replace(before, tag_ids=("work",)), before)


def test_untracked_fields_do_not_count_as_change() -> None:
    before = _task("A")
    assert not has_changed(replace(before, completed_at=NOW), before)


def test_applied_patch_leaves_view_with_current_ids() -> None:
    rng = random.Random(7)
    pool = [_task(f"t{i}", title=f"title {i}") for i in range(12)]

    for _ in range(25):
        prev = rng.sample(pool, rng.randint(0, len(pool)))
        curr = [
            replace(t, title=t.title + "!") if rng.random() < 0.3 else t
            for t in rng.sample(pool, rng.randint(0, len(pool)))
        ]
        view = RecordingRenderer()
        view.rebuild(prev)

        apply_patch(view, diff(snapshot_of(prev), curr))

        assert set(view.rows) == {t.id for t in curr}


def test_reconciler_touches_only_changed_rows() -> None:
    view = ConsoleListView()
    rec = Reconciler(view)
    a, b, c = _task("A", "a"), _task("B", "b"), _task("C", "c")

    rec.reconcile([a, b, c])
    result = rec.reconcile([a, replace(b, title="b2")])

    assert not result.fallback
    assert view.ids == ["A", "B"]
    assert view.version("A") == 1
    assert view.version("B") == 2


def test_reconciler_falls_back_to_rebuild_and_reports_it() -> None:
    view = FlakyRenderer()
    rec = Reconciler(view)
    rec.reconcile([_task("A")])

    view.fail_next = True
    result = rec.reconcile([_task("A", "changed"), _task("B")])

    assert result.fallback
    assert result.error == "view node missing"
    assert [t.id for t in result.patch.added] == ["A", "B"]
    assert view.calls[-1] == ("rebuild", "2")
    assert set(view.rows) == {"A", "B"}
    assert set(rec.snapshot) == {"A", "B"}

    # Back to incremental on the next pass.
    again = rec.reconcile([_task("A", "changed"), _task("B")])
    assert not again.fallback and again.patch.is_empty


def test_reset_forces_everything_to_be_added() -> None:
    view = RecordingRenderer()
    rec = Reconciler(view)
    rec.reconcile([_task("A")])

    rec.reset()
    result = rec.reconcile([_task("A")])

    assert [t.id for t in result.patch.added] == ["A"]


def test_failed_rebuild_clears_snapshot_and_propagates() -> None:
    view = FlakyRenderer()
    rec = Reconciler(view)
    rec.reconcile([_task("A")])

    view.fail_next = True
    view.fail_rebuild = True
    with pytest.raises(RuntimeError, match="view container gone"):
        rec.reconcile([_task("A", "changed")])

    assert rec.snapshot == {}

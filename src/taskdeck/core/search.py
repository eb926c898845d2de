# src/taskdeck/core/search.py

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import Category, Priority, Tag, Task

MIN_SEARCH_LENGTH = 2
DEFAULT_SUGGESTION_LIMIT = 5

# Weights for relevance ranking.
_W_TITLE = 10
_W_TITLE_PREFIX = 5
_W_DESCRIPTION = 5
_W_CATEGORY = 3
_W_TAG = 2
_W_PENDING = 1
_W_HIGH_PRIORITY = 1


def relevance_score(
    task: Task,
    term: str,
    categories: Iterable[Category] = (),
    tags: Iterable[Tag] = (),
) -> int:
    needle = term.lower()
    score = 0

    title = (task.title or "").lower()
    if needle in title:
        score += _W_TITLE
        if title.startswith(needle):
            score += _W_TITLE_PREFIX

    if task.description and needle in task.description.lower():
        score += _W_DESCRIPTION

    category = next((c for c in categories if c.id == task.category_id), None)
    if category and needle in category.name.lower():
        score += _W_CATEGORY

    tag_names = {t.id: t.name for t in tags}
    for tid in task.tag_ids:
        name = tag_names.get(tid)
        if name and needle in name.lower():
            score += _W_TAG

    if not task.completed:
        score += _W_PENDING
    if task.priority == Priority.HIGH:
        score += _W_HIGH_PRIORITY

    return score


def rank_by_relevance(
    tasks: Sequence[Task],
    term: str,
    categories: Sequence[Category] = (),
    tags: Sequence[Tag] = (),
) -> list[Task]:
    """
    Order tasks by descending relevance to term.

    Terms shorter than MIN_SEARCH_LENGTH leave the input order untouched.
    Tasks with equal scores keep their relative order.
    """
    if len(term or "") < MIN_SEARCH_LENGTH:
        return list(tasks)
    scored = [(relevance_score(t, term, categories, tags), t) for t in tasks]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [t for _, t in scored]


def search_suggestions(
    tasks: Iterable[Task],
    categories: Iterable[Category],
    tags: Iterable[Tag],
    partial: str,
    *,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> list[str]:
    """Distinct task titles, category names and tag names containing partial."""
    if not partial:
        return []
    needle = partial.lower()
    seen: dict[str, None] = {}
    for text in (
        *(t.title for t in tasks),
        *(c.name for c in categories),
        *(t.name for t in tags),
    ):
        if text and needle in text.lower():
            seen.setdefault(text, None)
    return list(seen)[: max(0, int(limit))]

# src/taskdeck/core/recurrence.py

"""
Recurrence calculator.

next_occurrence() is a pure function of the task: it reads only the rule and
the task's own due date, so a delayed generation still follows the original
schedule. Missing or malformed data yields None (the series does not advance).
"""

from __future__ import annotations

from datetime import date
from typing import assert_never

from .dates import add_days, add_months, add_years, js_weekday
from .models import RecurrenceData, RecurrenceType, Task

DAYS_PER_WEEK = 7


def next_weekly_date(base: date, data: RecurrenceData | None) -> date:
    """
    Next date on one of the selected weekdays, strictly after base.

    With no weekdays selected the rule is "same weekday next week".
    """
    selected = sorted(set(data.weekdays)) if data else []
    if not selected:
        return add_days(base, DAYS_PER_WEEK)

    current = js_weekday(base)
    for weekday in selected:
        if weekday > current:
            return add_days(base, weekday - current)

    return add_days(base, DAYS_PER_WEEK - current + selected[0])


def next_occurrence(task: Task) -> date | None:
    base = task.due_date
    if base is None:
        return None

    try:
        return _advance(base, task)
    except OverflowError:
        # Past date.max the series cannot advance.
        return None


def _advance(base: date, task: Task) -> date | None:
    # Unknown rule text parses to NONE.
    rtype = RecurrenceType.parse(task.recurrence_type)
    if rtype == RecurrenceType.NONE:
        return None
    if rtype == RecurrenceType.DAILY:
        return add_days(base, 1)
    if rtype == RecurrenceType.WEEKLY:
        return next_weekly_date(base, task.recurrence_data)
    if rtype == RecurrenceType.MONTHLY:
        return add_months(base, 1)
    if rtype == RecurrenceType.YEARLY:
        return add_years(base, 1)
    assert_never(rtype)

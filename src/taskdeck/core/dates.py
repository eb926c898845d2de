# src/taskdeck/core/dates.py

"""
Calendar-day helpers shared by filtering and recurrence.

All due-date predicates work on calendar days in the local timezone, never on
time of day. Month/year arithmetic keeps the day of month and lets overflow
spill into the following month (Jan 31 + 1 month -> Mar 3 in a common year).
"""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Any

UPCOMING_WINDOW_DAYS = 7


def today() -> date:
    return datetime.now().astimezone().date()


def local_day(ts: datetime | None) -> date:
    if ts is None:
        return today()
    return ts.astimezone().date()


def parse_date(raw: Any) -> date | None:
    """Parse YYYY-MM-DD (extra characters after the date are ignored)."""
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError:
        return None


def js_weekday(d: date) -> int:
    """Weekday index with Sunday = 0 .. Saturday = 6."""
    return (d.weekday() + 1) % 7


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def _rollover(year: int, month: int, day: int) -> date:
    # month is 1-based and already normalised; day may exceed the month length.
    if not MINYEAR <= year <= MAXYEAR:
        raise OverflowError("date value out of range")
    last = calendar.monthrange(year, month)[1]
    if day <= last:
        return date(year, month, day)
    return date(year, month, last) + timedelta(days=day - last)


def add_months(d: date, months: int) -> date:
    index = d.month - 1 + months
    year = d.year + index // 12
    month = index % 12 + 1
    return _rollover(year, month, d.day)


def add_years(d: date, years: int) -> date:
    return _rollover(d.year + years, d.month, d.day)


def is_due_today(task: Any, on: date) -> bool:
    due = getattr(task, "due_date", None)
    return due is not None and due == on


def is_upcoming(task: Any, on: date) -> bool:
    due = getattr(task, "due_date", None)
    if due is None:
        return False
    return on < due <= on + timedelta(days=UPCOMING_WINDOW_DAYS)


def is_overdue(task: Any, on: date) -> bool:
    due = getattr(task, "due_date", None)
    if due is None or getattr(task, "completed", False):
        return False
    return due < on

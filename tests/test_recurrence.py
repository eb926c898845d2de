# tests/test_recurrence.py

from __future__ import annotations

from datetime import date

import pytest

from taskdeck.core.dates import add_months, add_years, js_weekday
from taskdeck.core.models import RecurrenceData, RecurrenceType, Task
from taskdeck.core.recurrence import next_occurrence, next_weekly_date


def _recurring(due: date | None, rtype: RecurrenceType | str, weekdays: tuple[int, ...] | None = None) -> Task:
    return Task(
        id="r1",
        title="repeat me",
        due_date=due,
        is_recurring=True,
        recurrence_type=rtype,  # type: ignore[arg-type]
        recurrence_data=RecurrenceData(weekdays=weekdays) if weekdays is not None else None,
    )


def test_weekday_index_starts_on_sunday() -> None:
    assert js_weekday(date(2024, 1, 7)) == 0  # Sunday
    assert js_weekday(date(2024, 1, 10)) == 3  # Wednesday
    assert js_weekday(date(2024, 1, 13)) == 6  # Saturday


def test_daily_adds_one_day() -> None:
    assert next_occurrence(_recurring(date(2024, 12, 31), RecurrenceType.DAILY)) == date(2025, 1, 1)


def test_weekly_wraps_to_first_selected_day_next_week() -> None:
    wednesday = date(2024, 1, 10)
    task = _recurring(wednesday, RecurrenceType.WEEKLY, weekdays=(1, 3))

    assert next_occurrence(task) == date(2024, 1, 15)  # +5 days, Monday


def test_weekly_picks_next_selected_day_in_same_week() -> None:
    monday = date(2024, 1, 8)
    task = _recurring(monday, RecurrenceType.WEEKLY, weekdays=(5, 1, 3))

    assert next_occurrence(task) == date(2024, 1, 10)


@pytest.mark.parametrize("weekdays", [(), None])
def test_weekly_without_weekdays_is_plus_seven(weekdays) -> None:
    task = _recurring(date(2024, 1, 10), RecurrenceType.WEEKLY, weekdays=weekdays)
    assert next_occurrence(task) == date(2024, 1, 17)


def test_weekly_only_current_weekday_selected_moves_a_full_week() -> None:
    assert next_weekly_date(date(2024, 1, 10), RecurrenceData(weekdays=(3,))) == date(2024, 1, 17)


def test_monthly_overflow_rolls_into_next_month() -> None:
    assert next_occurrence(_recurring(date(2023, 1, 31), RecurrenceType.MONTHLY)) == date(2023, 3, 3)
    assert next_occurrence(_recurring(date(2024, 1, 31), RecurrenceType.MONTHLY)) == date(2024, 3, 2)
    assert next_occurrence(_recurring(date(2024, 12, 15), RecurrenceType.MONTHLY)) == date(2025, 1, 15)


def test_yearly_leap_day_rolls_to_march_first() -> None:
    assert next_occurrence(_recurring(date(2024, 2, 29), RecurrenceType.YEARLY)) == date(2025, 3, 1)


def test_month_and_year_helpers() -> None:
    assert add_months(date(2024, 11, 30), 3) == date(2025, 3, 2)
    assert add_years(date(2023, 6, 1), 2) == date(2025, 6, 1)


@pytest.mark.parametrize(
    "task",
    [
        _recurring(None, RecurrenceType.DAILY),
        _recurring(date(2024, 1, 10), RecurrenceType.NONE),
        _recurring(date(2024, 1, 10), "fortnightly"),
    ],
)
def test_no_next_date_for_incomplete_rules(task: Task) -> None:
    assert next_occurrence(task) is None


def test_next_occurrence_is_deterministic() -> None:
    task = _recurring(date(2024, 1, 10), RecurrenceType.WEEKLY, weekdays=(0, 6))
    first = next_occurrence(task)
    assert first == next_occurrence(task) == date(2024, 1, 13)
    assert task.due_date == date(2024, 1, 10)


@pytest.mark.parametrize(
    "due, rtype",
    [
        (date(9999, 12, 31), RecurrenceType.DAILY),
        (date(9999, 12, 31), RecurrenceType.WEEKLY),
        (date(9999, 12, 15), RecurrenceType.MONTHLY),
        (date(9999, 6, 1), RecurrenceType.YEARLY),
    ],
)
def test_series_at_end_of_calendar_does_not_advance(due: date, rtype: RecurrenceType) -> None:
    assert next_occurrence(_recurring(due, rtype)) is None

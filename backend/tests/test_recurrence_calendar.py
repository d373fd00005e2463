"""
Month arithmetic and occurrence date resolution.
"""
from datetime import date

import pytest

from app.services.recurrence_calendar import (
    add_months,
    days_in_month,
    iter_months,
    month_start,
    resolve_occurrence_date,
)


@pytest.mark.parametrize(
    "year, month, expected",
    [
        (2024, 2, date(2024, 2, 29)),
        (2025, 2, date(2025, 2, 28)),
        (1900, 2, date(1900, 2, 28)),
        (2000, 2, date(2000, 2, 29)),
        (2025, 4, date(2025, 4, 30)),
        (2025, 12, date(2025, 12, 31)),
    ],
)
def test_end_of_month_clamps_to_last_day(year, month, expected):
    assert resolve_occurrence_date(year, month, 31, True) == expected


def test_end_of_month_keeps_days_that_exist():
    assert resolve_occurrence_date(2025, 2, 15, True) == date(2025, 2, 15)
    assert resolve_occurrence_date(2025, 4, 30, True) == date(2025, 4, 30)


def test_plain_day_is_used_as_is():
    assert resolve_occurrence_date(2025, 2, 28, False) == date(2025, 2, 28)
    assert resolve_occurrence_date(2025, 7, 1, False) == date(2025, 7, 1)


def test_add_months_crosses_year_boundaries():
    assert add_months(date(2024, 12, 1), 1) == date(2025, 1, 1)
    assert add_months(date(2025, 1, 1), 24) == date(2027, 1, 1)
    assert add_months(date(2025, 3, 1), -3) == date(2024, 12, 1)
    assert add_months(date(2025, 1, 1), 0) == date(2025, 1, 1)


def test_iter_months_is_inclusive():
    months = list(iter_months(date(2024, 11, 1), date(2025, 2, 1)))
    assert months == [date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1), date(2025, 2, 1)]


def test_iter_months_single_and_empty():
    assert list(iter_months(date(2025, 5, 1), date(2025, 5, 1))) == [date(2025, 5, 1)]
    assert list(iter_months(date(2025, 5, 1), date(2025, 4, 1))) == []


def test_month_helpers():
    assert month_start(date(2025, 1, 15)) == date(2025, 1, 1)
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2025, 11) == 30

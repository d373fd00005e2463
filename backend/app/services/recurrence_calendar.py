"""
Month arithmetic for fixed recurring entries.

Periods are represented by the first day of their month.
"""
import calendar
from datetime import date
from typing import Iterator


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_start(d: date) -> date:
    return d.replace(day=1)


def add_months(period: date, n: int) -> date:
    """Shift a period by n months. The result is always a first-of-month date."""
    month = period.month - 1 + n
    year = period.year + month // 12
    month = month % 12 + 1
    return date(year, month, 1)


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield every period from start through end inclusive."""
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield current
        current = add_months(current, 1)


def resolve_occurrence_date(year: int, month: int, day_of_month: int, use_end_of_month: bool) -> date:
    """
    Calendar date of an occurrence in the given month.

    With use_end_of_month the day is clamped to the month length, so 31 lands on
    Feb 28/29, Apr 30 and so on. Without it day_of_month is at most 28 and used as-is.
    """
    if use_end_of_month:
        day = min(day_of_month, days_in_month(year, month))
    else:
        day = day_of_month
    return date(year, month, day)


def is_month_start(d: date) -> bool:
    return d.day == 1

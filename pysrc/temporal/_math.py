"""Date and calendar arithmetic helpers."""

from datetime import (
    date as _date,
    datetime as _datetime,
    timedelta as _timedelta,
)


def is_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


# 1-indexed days per month
_MONTHDAYS = [0, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def days_in_month(year: int, month: int) -> int:
    return _MONTHDAYS[month] + (month == 2 and is_leap(year))


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """The (year, month) that lies the given number of months away"""
    year_delta, month0_new = divmod(month - 1 + months, 12)
    return year + year_delta, month0_new + 1


def add_months_overflowing(d: _date, months: int) -> _date:
    """Move the date by the given number of months, keeping the day of the month.
    A day that doesn't exist in the target month rolls over into the next month
    (e.g. Jan 31 + 1 month is Mar 3 in a non-leap year).
    """
    year, month = shift_month(d.year, d.month, months)
    return _date(year, month, 1) + _timedelta(d.day - 1)


def add_months_clamped(d: _datetime, months: int) -> _datetime:
    """Move the datetime by the given number of months. A day that doesn't
    exist in the target month is clamped to the last day of that month."""
    year, month = shift_month(d.year, d.month, months)
    return d.replace(
        year=year, month=month, day=min(d.day, days_in_month(year, month))
    )

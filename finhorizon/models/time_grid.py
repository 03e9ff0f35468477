"""
Time utilities for the projection engine.

This module converts pairs of dates into elapsed durations. Decimal years
drive rate compounding and whole calendar months count discrete
contributions. Liabilities locate their position in a payment schedule with a
third measure, elapsed loan periods.
"""

import calendar
import math
from datetime import date, datetime, time
from typing import Optional, Union

DAYS_PER_YEAR = 365.25
DAYS_PER_LOAN_MONTH = 30.44
SECONDS_PER_DAY = 86400

# Standard horizons (years from now) for projection reports
PROJECTION_YEARS = (1, 5, 10, 20)

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _as_datetime(value: DateLike) -> datetime:
    # Plain dates are taken at midnight
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _elapsed_days(start: DateLike, end: DateLike) -> float:
    delta = _as_datetime(end) - _as_datetime(start)
    return delta.total_seconds() / SECONDS_PER_DAY


def get_current_date() -> date:
    """Get the current date (the default ``as_of`` for every engine call)."""
    return date.today()


def resolve_as_of(as_of: Optional[DateLike]) -> DateLike:
    """Return ``as_of`` unchanged, falling back to today.

    A datetime keeps its time of day so elapsed durations stay exact.
    """
    if as_of is None:
        return get_current_date()
    return as_of


def years_between(start: DateLike, end: DateLike) -> float:
    """
    Calculate the number of years between two dates as a decimal.

    Two years and six months returns roughly 2.5. Time of day counts when
    either end is a datetime. The result is negative when ``end`` precedes
    ``start``.

    Args:
        start: Start date
        end: End date

    Returns:
        Decimal years between the two dates
    """
    return _elapsed_days(start, end) / DAYS_PER_YEAR


def months_between(start: DateLike, end: DateLike) -> int:
    """
    Calculate the number of calendar months between two dates.

    Day-of-month is ignored: January 31st to February 1st is one month.

    Args:
        start: Start date
        end: End date

    Returns:
        Whole months between the two dates (negative if end < start)
    """
    start_d = _as_date(start)
    end_d = _as_date(end)
    return (end_d.year - start_d.year) * 12 + (end_d.month - start_d.month)


def loan_months_elapsed(start: DateLike, end: DateLike) -> int:
    """
    Calculate the number of loan periods elapsed between two dates.

    A loan period is an average month of 30.44 days. The value is floored
    towards negative infinity, so any date before ``start`` yields a negative
    count.

    Args:
        start: Loan start date
        end: Date to measure to

    Returns:
        Elapsed loan periods
    """
    return math.floor(_elapsed_days(start, end) / DAYS_PER_LOAN_MONTH)


def add_years(value: DateLike, years: int) -> date:
    """
    Shift a date by a whole number of calendar years.

    February 29th maps to February 28th in non-leap target years.

    Args:
        value: The date to shift
        years: Number of years to add (may be negative)

    Returns:
        The shifted date
    """
    d = _as_date(value)
    target_year = d.year + years
    if d.month == 2 and d.day == 29 and not calendar.isleap(target_year):
        return d.replace(year=target_year, day=28)
    return d.replace(year=target_year)


def round_currency(amount: float) -> float:
    """Round a monetary amount to cents."""
    return round(amount, 2)

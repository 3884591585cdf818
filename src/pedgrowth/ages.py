"""
Age calculations used as reference-table lookup keys.
"""

from datetime import date, datetime, timedelta
from typing import Union

from .config import DAYS_PER_MONTH

DateLike = Union[date, datetime]


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def age_in_days(date_of_birth: DateLike, measurement_date: DateLike) -> int:
    """
    Whole days elapsed between birth and measurement.

    Uses elapsed time, not calendar-month arithmetic, floored to an integer.
    A measurement before birth yields a negative age; callers decide whether
    to reject it.

    Args:
        date_of_birth: Birth date or instant
        measurement_date: Measurement date or instant, on the same clock

    Returns:
        Age in days
    """
    elapsed = _as_datetime(measurement_date) - _as_datetime(date_of_birth)
    return elapsed // timedelta(days=1)


def age_in_months(age_days: float) -> float:
    """Age in days expressed as (average-length) months."""
    return age_days / DAYS_PER_MONTH

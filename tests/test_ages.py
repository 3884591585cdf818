from datetime import date, datetime, timezone

import pytest

from pedgrowth.ages import age_in_days, age_in_months


def test_tc001_age_in_days_dates() -> None:
    """Whole days between two dates"""
    assert age_in_days(date(2024, 1, 1), date(2024, 1, 16)) == 15


def test_tc002_age_in_days_leap_year() -> None:
    """Elapsed days follow the calendar, including Feb 29"""
    assert age_in_days(date(2024, 2, 1), date(2024, 3, 1)) == 29
    assert age_in_days(date(2023, 2, 1), date(2023, 3, 1)) == 28


def test_tc003_age_in_days_floors_partial_days() -> None:
    """Partial days are floored"""
    dob = datetime(2024, 1, 1, 18, 0)
    assert age_in_days(dob, datetime(2024, 1, 2, 17, 59)) == 0
    assert age_in_days(dob, datetime(2024, 1, 2, 18, 0)) == 1


def test_tc004_age_in_days_negative_not_clamped() -> None:
    """Measurement before birth gives a negative age"""
    assert age_in_days(date(2024, 1, 10), date(2024, 1, 1)) == -9
    assert age_in_days(datetime(2024, 1, 1, 12), datetime(2024, 1, 1, 6)) == -1


def test_tc005_age_in_days_mixed_date_and_datetime() -> None:
    """Dates compare as midnight on the same clock"""
    assert age_in_days(date(2024, 1, 1), datetime(2024, 1, 3, 9, 30)) == 2


def test_tc006_age_in_days_aware_datetimes() -> None:
    """Timezone-aware instants compare as elapsed time"""
    dob = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert age_in_days(dob, datetime(2024, 1, 31, tzinfo=timezone.utc)) == 30


def test_tc007_age_in_months() -> None:
    """Days convert to average-length months"""
    assert age_in_months(0) == 0.0
    assert age_in_months(365.25) == pytest.approx(12.0)

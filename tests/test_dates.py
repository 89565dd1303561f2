from __future__ import annotations

import datetime as dt

import pytest

from code_pulse.dates import days_between, record_datetime, record_day, utc_day
from code_pulse.errors import ParseError


def test_utc_day() -> None:
    assert utc_day("2024-01-01T23:30:00-08:00") == dt.date(2024, 1, 2)
    assert utc_day("2024-01-01T01:00:00+02:00") == dt.date(2023, 12, 31)
    assert utc_day("2024-01-01T12:00:00Z") == dt.date(2024, 1, 1)


def test_record_datetime_round_trip() -> None:
    assert record_datetime(dt.date(2024, 3, 14)) == "2024-03-14T00:00:00Z"
    assert record_day("2024-03-14T00:00:00Z") == dt.date(2024, 3, 14)
    assert record_day("2024-03-14") == dt.date(2024, 3, 14)


def test_days_between_is_exclusive() -> None:
    assert list(days_between(dt.date(2024, 2, 27), dt.date(2024, 3, 1))) == [dt.date(2024, 2, 28), dt.date(2024, 2, 29)]
    assert list(days_between(dt.date(2024, 1, 1), dt.date(2024, 1, 2))) == []


def test_invalid_timestamp() -> None:
    with pytest.raises(ParseError):
        utc_day("not a date")

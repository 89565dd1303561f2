from __future__ import annotations

import datetime as dt
from typing import Iterator

from .errors import ParseError


def parse_iso_datetime(value: str) -> dt.datetime:
    s = (value or "").strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(s)
    except ValueError as e:
        raise ParseError(f"Invalid ISO-8601 timestamp: {value!r}") from e
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d


def utc_day(value: str) -> dt.date:
    """Calendar day (UTC) of an ISO-8601 timestamp."""
    return parse_iso_datetime(value).astimezone(dt.timezone.utc).date()


def record_datetime(day: dt.date) -> str:
    return f"{day.isoformat()}T00:00:00Z"


def record_day(date_time: str) -> dt.date:
    s = (date_time or "").strip()
    if len(s) == 10:
        try:
            return dt.date.fromisoformat(s)
        except ValueError as e:
            raise ParseError(f"Invalid date: {date_time!r}") from e
    return utc_day(s)


def days_between(start: dt.date, end: dt.date) -> Iterator[dt.date]:
    """Days strictly between `start` and `end`."""
    cur = start + dt.timedelta(days=1)
    while cur < end:
        yield cur
        cur += dt.timedelta(days=1)

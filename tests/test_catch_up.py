from __future__ import annotations

import dataclasses
import datetime as dt
import json

from code_pulse.catch_up import last_persisted_day, reconcile, redate_records
from code_pulse.models import Commit, DailyCommit, Record


def _rec(day: str, language: str, code: int) -> Record:
    return Record(
        date_time=f"{day}T00:00:00Z",
        project="p",
        language=language,
        file_count=2,
        blank_lines=3,
        comment_lines=4,
        code_lines=code,
    )


def _bucket(day: dt.date) -> DailyCommit:
    return DailyCommit(date=day, commit=Commit(f"{day.isoformat()}T12:00:00Z", "abc", "dev@example.com"))


def test_redate_changes_only_the_date() -> None:
    prior = [_rec("2024-01-01", "Go", 10)]
    out = redate_records(prior, dt.date(2024, 1, 2))
    assert out == [dataclasses.replace(prior[0], date_time="2024-01-02T00:00:00Z")]


def test_first_run_has_no_catch_up() -> None:
    buckets = [_bucket(dt.date(2024, 1, 1))]
    res = reconcile([], buckets)
    assert res.records == []
    assert res.buckets == buckets
    assert res.last_day is None


def test_gap_is_filled_with_copies_of_the_last_stored_day() -> None:
    last = [_rec("2024-03-13", "Go", 10), _rec("2024-03-13", "Python", 7)]
    buckets = [_bucket(dt.date(2024, 3, 16))]

    res = reconcile(last, buckets)

    assert [(r.date_time, r.language) for r in res.records] == [
        ("2024-03-14T00:00:00Z", "Go"),
        ("2024-03-14T00:00:00Z", "Python"),
        ("2024-03-15T00:00:00Z", "Go"),
        ("2024-03-15T00:00:00Z", "Python"),
    ]
    assert all(r.code_lines in (10, 7) and r.file_count == 2 for r in res.records)
    assert res.buckets == buckets
    assert res.last_day == dt.date(2024, 3, 13)


def test_adjacent_day_needs_no_catch_up() -> None:
    res = reconcile([_rec("2024-03-13", "Go", 10)], [_bucket(dt.date(2024, 3, 14))])
    assert res.records == []
    assert len(res.buckets) == 1


def test_buckets_already_stored_are_dropped() -> None:
    last = [_rec("2024-03-13", "Go", 10)]
    buckets = [
        _bucket(dt.date(2024, 3, 13)),
        DailyCommit(date=dt.date(2024, 3, 14), shadow=True),
        _bucket(dt.date(2024, 3, 15)),
    ]
    res = reconcile(last, buckets)
    assert [b.date for b in res.buckets] == [dt.date(2024, 3, 14), dt.date(2024, 3, 15)]
    assert res.skipped_buckets == 1
    assert res.records == []
    assert res.baseline == last


def test_nothing_new() -> None:
    last = [_rec("2024-03-13", "Go", 10)]
    res = reconcile(last, [_bucket(dt.date(2024, 3, 13))])
    assert res.buckets == []
    assert res.records == []


def test_only_the_newest_stored_day_is_carried_forward() -> None:
    last = [_rec("2024-03-12", "Go", 1), _rec("2024-03-13", "Go", 10)]
    assert last_persisted_day(last) == dt.date(2024, 3, 13)
    res = reconcile(last, [_bucket(dt.date(2024, 3, 15))])
    assert [(r.date_time, r.code_lines) for r in res.records] == [("2024-03-14T00:00:00Z", 10)]


def test_reconcile_is_repeatable() -> None:
    last = [_rec("2024-03-13", "Python", 7), _rec("2024-03-13", "Go", 10)]
    buckets = [_bucket(dt.date(2024, 3, 20))]

    first = reconcile(last, buckets)
    second = reconcile(last, buckets)

    dump = lambda res: json.dumps([r.to_json() for r in res.records])  # noqa: E731
    assert dump(first) == dump(second)
    assert len(first.records) == 12

from __future__ import annotations

import dataclasses
import datetime as dt
import json
from pathlib import Path
from typing import Iterator

from .dates import record_day
from .errors import ContractViolationError
from .models import Record

METRICS = ("code_lines", "comment_lines", "blank_lines", "file_count")


@dataclasses.dataclass
class TimeSeriesData:
    language: str
    start_date: dt.date
    end_date: dt.date
    date: list[dt.date] = dataclasses.field(default_factory=list)
    data: list[int] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class TimeSeriesDataset:
    start_date: dt.date | None
    end_date: dt.date | None
    data: list[TimeSeriesData] = dataclasses.field(default_factory=list)


def to_time_series_dataset(records: list[Record], *, metric: str = "code_lines", project: str | None = None) -> TimeSeriesDataset:
    """
    Build one gap-free daily series per language.

    A language that disappears for some days (removed, later re-added) gets
    zeros on the days it has no record. Records sharing a language and a day
    (several projects) are summed.
    """
    if metric not in METRICS:
        raise ValueError(f"Unknown metric {metric!r} (expected one of: {', '.join(METRICS)})")
    rows = [r for r in records if project is None or r.project == project]
    if not rows:
        return TimeSeriesDataset(start_date=None, end_date=None, data=[])

    rows = sorted(rows, key=lambda r: r.key)
    by_language: dict[str, TimeSeriesData] = {}
    for r in rows:
        day = record_day(r.date_time)
        value = int(getattr(r, metric))
        series = by_language.get(r.language)
        if series is None:
            by_language[r.language] = TimeSeriesData(r.language, day, day, [day], [value])
            continue
        if day == series.end_date:
            series.data[-1] += value
            continue
        while (day - series.end_date).days > 1:
            series.end_date += dt.timedelta(days=1)
            series.date.append(series.end_date)
            series.data.append(0)
        series.end_date = day
        series.date.append(day)
        series.data.append(value)

    return TimeSeriesDataset(
        start_date=record_day(rows[0].date_time),
        end_date=record_day(rows[-1].date_time),
        data=[by_language[lang] for lang in sorted(by_language)],
    )


def slice_time_series_dataset(dataset: TimeSeriesDataset, start_date: dt.date, count: int) -> TimeSeriesDataset:
    """
    Cut the days `start_date .. start_date + count` (both included) out of `dataset`.

    The window end is clipped to the dataset end. Each language is clipped to
    the days it was observed; a language with no day in the window is kept
    with an empty series.
    """
    if count < 0:
        raise ContractViolationError(f"count must not be negative, got {count}")
    if dataset.start_date is None or dataset.end_date is None:
        return TimeSeriesDataset(start_date=start_date, end_date=start_date + dt.timedelta(days=count), data=[])
    if start_date < dataset.start_date:
        raise ContractViolationError(f"startDate {start_date} is before the dataset start {dataset.start_date}")

    window_end = start_date + dt.timedelta(days=count)
    end_date = max(start_date, min(window_end, dataset.end_date))

    sliced: list[TimeSeriesData] = []
    for series in dataset.data:
        lo = max(start_date, series.start_date)
        hi = min(window_end, series.end_date)
        if lo > hi:
            sliced.append(TimeSeriesData(series.language, start_date, window_end, [], []))
            continue
        i = (lo - series.start_date).days
        n = (hi - lo).days + 1
        sliced.append(TimeSeriesData(series.language, lo, hi, series.date[i : i + n], series.data[i : i + n]))
    return TimeSeriesDataset(start_date=start_date, end_date=end_date, data=sliced)


def iter_frames(dataset: TimeSeriesDataset, start_date: dt.date, step: int) -> Iterator[TimeSeriesDataset]:
    """Consecutive, non-overlapping windows of `step` days from `start_date` to the dataset end."""
    if step <= 0:
        raise ContractViolationError(f"step must be positive, got {step}")
    if dataset.end_date is None:
        return
    cur = start_date
    while cur <= dataset.end_date:
        yield slice_time_series_dataset(dataset, cur, step - 1)
        cur += dt.timedelta(days=step)


def dataset_to_json(dataset: TimeSeriesDataset) -> dict[str, object]:
    def iso(d: dt.date | None) -> str | None:
        return d.isoformat() if d is not None else None

    return {
        "startDate": iso(dataset.start_date),
        "endDate": iso(dataset.end_date),
        "data": [
            {
                "language": s.language,
                "startDate": iso(s.start_date),
                "endDate": iso(s.end_date),
                "date": [d.isoformat() for d in s.date],
                "data": list(s.data),
            }
            for s in dataset.data
        ],
    }


def write_dataset_json(path: Path, dataset: TimeSeriesDataset) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(dataset_to_json(dataset), indent=2) + "\n", encoding="utf-8")

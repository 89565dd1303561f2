from __future__ import annotations

import dataclasses
import datetime as dt

from .dates import days_between, record_datetime, record_day
from .models import DailyCommit, Record


@dataclasses.dataclass(frozen=True)
class CatchUp:
    records: list[Record]  # re-dated copies for the missing days, oldest first
    buckets: list[DailyCommit]  # buckets still to process
    baseline: list[Record] = dataclasses.field(default_factory=list)  # newest stored day
    last_day: dt.date | None = None
    skipped_buckets: int = 0


def redate_records(records: list[Record], day: dt.date) -> list[Record]:
    date_time = record_datetime(day)
    return [r.redated(date_time) for r in records]


def last_persisted_day(records: list[Record]) -> dt.date | None:
    if not records:
        return None
    return max(record_day(r.date_time) for r in records)


def _baseline(records: list[Record], day: dt.date) -> list[Record]:
    same_day = [r for r in records if record_day(r.date_time) == day]
    return sorted(same_day, key=lambda r: (r.project, r.language))


def reconcile(last_records: list[Record], buckets: list[DailyCommit]) -> CatchUp:
    """
    Join a fresh bucket list with what an earlier run already stored.

    Buckets on or before the last stored day are dropped. If the first
    remaining bucket starts more than a day later, the stored records are
    copied forward onto every day in between.
    """
    last_day = last_persisted_day(last_records)
    if last_day is None:
        return CatchUp(records=[], buckets=list(buckets))

    baseline = _baseline(last_records, last_day)
    pending = [b for b in buckets if b.date > last_day]
    skipped = len(buckets) - len(pending)

    filled: list[Record] = []
    for day in days_between(last_day, pending[0].date if pending else last_day):
        filled.extend(redate_records(baseline, day))
    return CatchUp(records=filled, buckets=pending, baseline=baseline, last_day=last_day, skipped_buckets=skipped)

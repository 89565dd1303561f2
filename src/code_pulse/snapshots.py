from __future__ import annotations

import dataclasses
from typing import Callable

from .catch_up import redate_records
from .counter import CounterOptions, LanguageCount, run_counter, to_records
from .dates import record_datetime
from .models import DailyCommit, Record
from .storage import Storage
from .workspace import WorkingCopy

CountFn = Callable[[WorkingCopy, CounterOptions], dict[str, LanguageCount]]


def count_working_copy(wc: WorkingCopy, options: CounterOptions) -> dict[str, LanguageCount]:
    return run_counter(wc.path, options)


@dataclasses.dataclass
class SnapshotSummary:
    days: int = 0
    counted_days: int = 0
    shadow_days: int = 0
    records: int = 0
    last_result: list[Record] = dataclasses.field(default_factory=list)


def shadow_records(last_result: list[Record], bucket: DailyCommit) -> list[Record]:
    return redate_records(last_result, bucket.date)


def take_snapshots(
    *,
    project: str,
    buckets: list[DailyCommit],
    working_copy: WorkingCopy,
    storage: Storage,
    options: CounterOptions,
    baseline: list[Record] | None = None,
    count: CountFn = count_working_copy,
) -> SnapshotSummary:
    """
    Store one record set per bucket, in order.

    Real days check their commit out and run the counter; shadow days repeat
    the most recent counted result under their own date. The working copy is
    back on the main branch when this returns or raises.
    """
    summary = SnapshotSummary(last_result=list(baseline or []))
    total = len(buckets)
    with working_copy.session() as wc:
        for i, bucket in enumerate(buckets, start=1):
            if bucket.shadow:
                records = shadow_records(summary.last_result, bucket)
                summary.shadow_days += 1
                print(f"[{i}/{total}] {bucket.date.isoformat()} (shadow)")
            else:
                commit = bucket.commit
                if commit is None:
                    raise ValueError(f"bucket {bucket.date} has no commit")
                wc.checkout(commit.short_hash)
                counts = count(wc, options)
                records = to_records(counts, date_time=record_datetime(bucket.date), project=project)
                summary.last_result = records
                summary.counted_days += 1
                print(f"[{i}/{total}] {bucket.date.isoformat()} {commit.short_hash} ({len(records)} languages)")
            storage.put_records(records)
            summary.records += len(records)
            summary.days += 1
    return summary

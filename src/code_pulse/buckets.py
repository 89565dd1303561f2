from __future__ import annotations

from .dates import days_between, utc_day
from .models import Commit, DailyCommit


def bucketize(commits: list[Commit]) -> list[DailyCommit]:
    """
    One bucket per calendar day from the first commit's day to the last one.

    The earliest commit of a day represents it; days without a commit become
    shadow buckets. `commits` must already be sorted oldest first.
    """
    if not commits:
        return []

    first = commits[0]
    cursor = utc_day(first.date_time)
    out: list[DailyCommit] = [DailyCommit(date=cursor, commit=first)]
    for c in commits[1:]:
        day = utc_day(c.date_time)
        if (day - cursor).days <= 0:
            continue
        for gap_day in days_between(cursor, day):
            out.append(DailyCommit(date=gap_day, shadow=True))
        cursor = day
        out.append(DailyCommit(date=day, commit=c))
    return out

from __future__ import annotations

import datetime as dt

from .dates import parse_iso_datetime, utc_day
from .errors import ParseError
from .models import Commit

DEFAULT_BOT_EMAIL_MARKERS = ("users.noreply.github.com", "[bot]@")


def is_bot_email(email: str, markers: tuple[str, ...] = DEFAULT_BOT_EMAIL_MARKERS) -> bool:
    e = (email or "").strip().lower()
    return any(m and m.lower() in e for m in markers)


def parse_log_line(line: str) -> Commit:
    parts = line.strip().split(" ")
    if len(parts) != 3 or not all(parts):
        raise ParseError(f"Unexpected git log line (want '<iso-date> <hash> <email>'): {line!r}")
    date_time, short_hash, email = parts
    parse_iso_datetime(date_time)
    return Commit(date_time=date_time, short_hash=short_hash, author_email=email)


def normalize_commits(
    lines: list[str],
    *,
    since: dt.date | None = None,
    bot_email_markers: tuple[str, ...] = DEFAULT_BOT_EMAIL_MARKERS,
) -> list[Commit]:
    """
    Turn raw `git log` lines into commits sorted oldest first.

    Bot/no-reply authors are dropped, and so is anything before `since`
    (a UTC calendar day, kept inclusively). Equal timestamps keep log order.
    """
    commits: list[Commit] = []
    for line in lines:
        if not line.strip():
            continue
        c = parse_log_line(line)
        if is_bot_email(c.author_email, bot_email_markers):
            continue
        if since is not None and utc_day(c.date_time) < since:
            continue
        commits.append(c)
    return sorted(commits, key=lambda c: parse_iso_datetime(c.date_time))

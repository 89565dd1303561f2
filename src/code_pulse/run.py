from __future__ import annotations

from . import git
from .buckets import bucketize
from .catch_up import last_persisted_day, reconcile
from .commit_log import normalize_commits
from .config import PulseConfig
from .snapshots import take_snapshots
from .storage import create_storage
from .workspace import sync_repo


def format_startup_header(cfg: PulseConfig) -> str:
    counter = cfg.counter
    filters = []
    if counter.list_file is not None:
        filters.append(f"list file {counter.list_file}")
    if counter.exclude_dirs:
        filters.append("excluded dirs " + ",".join(counter.exclude_dirs))
    if counter.exclude_langs:
        filters.append("excluded languages " + ",".join(counter.exclude_langs))
    lines = [
        "code-pulse",
        "",
        "Run plan:",
        f"1) Sync: {cfg.repo} -> {cfg.workspace / cfg.name}",
        f"2) Read history: main branch {cfg.main_branch or '(auto-detect)'}, one snapshot per day",
        f"3) Count: {counter.executable}" + (f" ({'; '.join(filters)})" if filters else ""),
        f"4) Store: {cfg.storage} at {cfg.storage_path} (batches of {cfg.buffer_size})",
        "",
        "Days already stored are skipped; the clone is left on the main branch.",
        "",
    ]
    return "\n".join(lines)


def run_pulse(cfg: PulseConfig) -> int:
    print(format_startup_header(cfg))

    storage = create_storage(cfg.storage, cfg.storage_path, buffer_size=cfg.buffer_size)
    working_copy = sync_repo(cfg.repo, cfg.name, cfg.workspace, cfg.main_branch)

    last_records = storage.get_last_records(cfg.name)
    since = last_persisted_day(last_records)
    if since is None:
        print(f"No stored records for {cfg.name}; replaying the full history.")
    else:
        print(f"Last stored day for {cfg.name}: {since.isoformat()}")

    lines = git.log(working_copy.path, since=since)
    commits = normalize_commits(lines, since=since, bot_email_markers=cfg.bot_email_markers)
    buckets = bucketize(commits)
    print(f"{len(commits)} commits -> {len(buckets)} days")

    catch_up = reconcile(last_records, buckets)
    if catch_up.records:
        days = len({r.date_time for r in catch_up.records})
        print(f"Catching up {days} day(s) after {catch_up.last_day} with the last stored counts")
        storage.put_records(catch_up.records)

    if not catch_up.buckets:
        storage.finalize()
        print(f"{cfg.name} is up to date.")
        return 0

    summary = take_snapshots(
        project=cfg.name,
        buckets=catch_up.buckets,
        working_copy=working_copy,
        storage=storage,
        options=cfg.counter,
        baseline=catch_up.baseline,
    )
    storage.finalize()
    print(
        f"Stored {summary.records + len(catch_up.records)} records for {cfg.name}: "
        f"{summary.counted_days} counted, {summary.shadow_days} shadow day(s)."
    )
    return 0

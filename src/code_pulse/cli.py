from __future__ import annotations

import argparse
import datetime as dt
import sys
from pathlib import Path

from .config import default_storage_path, load_config, resolve_config
from .errors import PulseError
from .run import run_pulse
from .storage import STORAGE_KINDS, create_storage
from .timeseries import METRICS, slice_time_series_dataset, to_time_series_dataset, write_dataset_json


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Replay a repo's history day by day and store per-language line counts.")
    parser.add_argument("repo", type=str, help="The repo to track (any URL or path `git clone` accepts).")
    parser.add_argument("--workspace", type=Path, default=None, help="Folder holding the clones (and the default storage file).")
    parser.add_argument("--name", type=str, required=True, help="Folder name of the clone; also the project name in storage.")
    parser.add_argument("--config", type=Path, default=Path("config.json"), help="Path to config.json.")
    parser.add_argument("--main-branch", type=str, default="", help="Branch to sync and restore (default: origin/HEAD).")
    parser.add_argument("--storage", choices=STORAGE_KINDS, default=None, help="Storage backend (default: sqlite).")
    parser.add_argument("--storage-path", type=Path, default=None, help="Storage file (default: <workspace>/data.db or data.json).")
    parser.add_argument("--buffer-size", type=int, default=0, help="Records per storage transaction (default: 500).")
    parser.add_argument("--cloc", type=str, default="", help="Counter executable (default: $CLOC or cloc).")
    parser.add_argument("--cloc-list", type=Path, default=None, help="File listing the paths to count.")
    parser.add_argument("--exclude-dirs", type=str, default="", help="Comma-separated directories the counter skips.")
    parser.add_argument("--exclude-langs", type=str, default="", help="Comma-separated languages the counter skips.")
    return parser


def _build_export_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="code-pulse export", description="Write stored records as a per-language daily time series.")
    p.add_argument("--storage", choices=STORAGE_KINDS, default="sqlite", help="Storage backend.")
    p.add_argument("--storage-path", type=Path, default=None, help="Storage file (default: ./data.db or ./data.json).")
    p.add_argument("--project", type=str, default=None, help="Only this project (default: all projects summed).")
    p.add_argument("--metric", choices=METRICS, default="code_lines", help="Value to chart.")
    p.add_argument("--start", type=dt.date.fromisoformat, default=None, help="Window start (YYYY-MM-DD).")
    p.add_argument("--days", type=int, default=None, help="Window length in days after --start.")
    p.add_argument("--out", type=Path, default=Path("timeseries.json"), help="Output JSON file.")
    return p


def export_main(argv: list[str]) -> int:
    args = _build_export_parser().parse_args(argv)
    storage_path = args.storage_path or default_storage_path(Path.cwd(), args.storage)
    if not storage_path.exists():
        print(f"error: no storage at {storage_path}", file=sys.stderr)
        return 2
    if args.out.resolve() == storage_path.resolve():
        print(f"error: --out would overwrite the storage file {storage_path}", file=sys.stderr)
        return 2
    storage = create_storage(args.storage, storage_path)
    dataset = to_time_series_dataset(storage.read_records(args.project), metric=args.metric)
    if args.start is not None or args.days is not None:
        start = args.start or dataset.start_date or dt.date.today()
        days = args.days if args.days is not None else ((dataset.end_date or start) - start).days
        dataset = slice_time_series_dataset(dataset, start, days)
    write_dataset_json(args.out, dataset)
    print(f"Wrote {len(dataset.data)} series to {args.out}")
    return 0


def run_main(argv: list[str]) -> int:
    args = _build_parser().parse_args(argv)
    try:
        cfg = resolve_config(args, load_config(args.config))
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return run_pulse(cfg)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        p = _build_parser()
        p.prog = "code-pulse"
        p.print_help()
        print("")
        print("commands:")
        print("  export   Write stored records as a per-language daily time series (JSON).")
        print("")
        print("Run `code-pulse <command> --help` for command-specific options.")
        return 0
    try:
        if argv[0] == "export":
            return export_main(argv[1:])
        return run_main(argv)
    except PulseError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

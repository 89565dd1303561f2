from __future__ import annotations

import argparse
import dataclasses
import json
from pathlib import Path

from .commit_log import DEFAULT_BOT_EMAIL_MARKERS
from .counter import CounterOptions, default_executable
from .storage import DEFAULT_BUFFER_SIZE, STORAGE_KINDS


@dataclasses.dataclass(frozen=True)
class PulseConfig:
    repo: str
    name: str
    workspace: Path
    storage: str
    storage_path: Path
    buffer_size: int
    main_branch: str | None
    counter: CounterOptions
    bot_email_markers: tuple[str, ...]


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{config_path} must hold a JSON object")
    return data


def _str_list(value: object) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(v).strip() for v in value if str(v).strip())


def default_storage_path(workspace: Path, storage: str) -> Path:
    return workspace / ("data.json" if storage == "json" else "data.db")


def resolve_config(args: argparse.Namespace, config: dict) -> PulseConfig:
    """Command-line flags win over config.json, which wins over the defaults."""
    workspace = Path(args.workspace or config.get("workspace") or ".").resolve()

    storage = str(args.storage or config.get("storage") or "sqlite").strip().lower()
    if storage not in STORAGE_KINDS:
        raise ValueError(f"Unsupported storage {storage!r} (expected one of: {', '.join(STORAGE_KINDS)})")

    storage_path_raw = args.storage_path or config.get("storage_path")
    storage_path = Path(storage_path_raw).resolve() if storage_path_raw else default_storage_path(workspace, storage)

    buffer_size = int(args.buffer_size or config.get("buffer_size") or DEFAULT_BUFFER_SIZE)
    if buffer_size <= 0:
        raise ValueError(f"buffer_size must be positive, got {buffer_size}")

    list_file_raw = args.cloc_list or config.get("cloc_list_file")
    counter = CounterOptions(
        executable=str(args.cloc or config.get("cloc") or default_executable()),
        list_file=Path(list_file_raw).resolve() if list_file_raw else None,
        exclude_dirs=_str_list(args.exclude_dirs or config.get("exclude_dirs")),
        exclude_langs=_str_list(args.exclude_langs or config.get("exclude_langs")),
    )

    markers = config.get("bot_email_markers")
    return PulseConfig(
        repo=str(args.repo),
        name=str(args.name),
        workspace=workspace,
        storage=storage,
        storage_path=storage_path,
        buffer_size=buffer_size,
        main_branch=str(args.main_branch or config.get("main_branch") or "").strip() or None,
        counter=counter,
        bot_email_markers=_str_list(markers) if markers is not None else DEFAULT_BOT_EMAIL_MARKERS,
    )

from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path

from .errors import ExternalToolError, ParseError
from .git import CommandResult, run_command
from .models import Record

# cloc puts its run metadata and the grand total next to the languages.
PSEUDO_LANGUAGES = frozenset({"header", "SUM"})


@dataclasses.dataclass(frozen=True)
class LanguageCount:
    file_count: int
    blank_lines: int
    comment_lines: int
    code_lines: int


@dataclasses.dataclass(frozen=True)
class CounterOptions:
    executable: str = "cloc"
    list_file: Path | None = None
    exclude_dirs: tuple[str, ...] = ()
    exclude_langs: tuple[str, ...] = ()
    timeout_s: int | None = None


def default_executable() -> str:
    return os.environ.get("CLOC", "").strip() or "cloc"


def counter_args(options: CounterOptions) -> list[str]:
    args = [options.executable, "--json", "--quiet"]
    if options.exclude_dirs:
        args.append("--exclude-dir=" + ",".join(options.exclude_dirs))
    if options.exclude_langs:
        args.append("--exclude-lang=" + ",".join(options.exclude_langs))
    if options.list_file is not None:
        args.append(f"--list-file={options.list_file}")
    else:
        args.append(".")
    return args


def parse_counter_output(text: str) -> dict[str, LanguageCount]:
    # cloc prints nothing at all when no countable file was found
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Counter output is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise ParseError(f"Counter output must be a JSON object, got {type(data).__name__}")

    out: dict[str, LanguageCount] = {}
    for language, st in data.items():
        if language in PSEUDO_LANGUAGES:
            continue
        if not isinstance(st, dict):
            raise ParseError(f"Counter entry for {language!r} is not an object")
        try:
            out[language] = LanguageCount(
                file_count=int(st.get("nFiles", 0)),
                blank_lines=int(st.get("blank", 0)),
                comment_lines=int(st.get("comment", 0)),
                code_lines=int(st.get("code", 0)),
            )
        except (TypeError, ValueError) as e:
            raise ParseError(f"Counter entry for {language!r} has non-numeric counts") from e
    return out


def run_counter(repo: Path, options: CounterOptions) -> dict[str, LanguageCount]:
    result: CommandResult = run_command(counter_args(options), cwd=repo, timeout_s=options.timeout_s)
    if not result.ok:
        raise ExternalToolError(f"{options.executable} failed (exit {result.returncode})", command=result.args, stderr=result.stderr)
    return parse_counter_output(result.stdout)


def to_records(counts: dict[str, LanguageCount], *, date_time: str, project: str) -> list[Record]:
    return [
        Record(
            date_time=date_time,
            project=project,
            language=language,
            file_count=st.file_count,
            blank_lines=st.blank_lines,
            comment_lines=st.comment_lines,
            code_lines=st.code_lines,
        )
        for language, st in sorted(counts.items())
    ]

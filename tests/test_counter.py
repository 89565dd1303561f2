from __future__ import annotations

import json
from pathlib import Path

import pytest

from code_pulse.counter import CounterOptions, counter_args, parse_counter_output, run_counter, to_records
from code_pulse.errors import ExternalToolError, ParseError

CLOC_JSON = {
    "header": {"cloc_url": "github.com/AlDanial/cloc", "n_files": 3, "n_lines": 120},
    "Python": {"nFiles": 2, "blank": 10, "comment": 5, "code": 80},
    "Go": {"nFiles": 1, "blank": 4, "comment": 1, "code": 20},
    "SUM": {"blank": 14, "comment": 6, "code": 100, "nFiles": 3},
}


def test_parse_drops_header_and_sum() -> None:
    counts = parse_counter_output(json.dumps(CLOC_JSON))
    assert sorted(counts) == ["Go", "Python"]
    assert counts["Python"].file_count == 2
    assert counts["Python"].code_lines == 80


def test_parse_empty_output_means_nothing_counted() -> None:
    assert parse_counter_output("") == {}
    assert parse_counter_output("\n") == {}


@pytest.mark.parametrize("text", ["not json", "[1, 2]", '{"Go": 3}', '{"Go": {"code": "many"}}'])
def test_parse_rejects_malformed_output(text: str) -> None:
    with pytest.raises(ParseError):
        parse_counter_output(text)


def test_counter_args() -> None:
    opts = CounterOptions(executable="/opt/cloc", exclude_dirs=("vendor", "node_modules"), exclude_langs=("JSON",))
    assert counter_args(opts) == ["/opt/cloc", "--json", "--quiet", "--exclude-dir=vendor,node_modules", "--exclude-lang=JSON", "."]
    listed = counter_args(CounterOptions(list_file=Path("/tmp/files.txt")))
    assert listed[-1] == "--list-file=/tmp/files.txt"


def test_to_records_dates_every_language() -> None:
    records = to_records(parse_counter_output(json.dumps(CLOC_JSON)), date_time="2024-01-01T00:00:00Z", project="p")
    assert [(r.language, r.blank_lines, r.comment_lines) for r in records] == [("Go", 4, 1), ("Python", 10, 5)]
    assert {r.date_time for r in records} == {"2024-01-01T00:00:00Z"}


def test_run_counter_with_fake_cloc(tmp_path: Path, fake_cloc: Path) -> None:
    work = tmp_path / "work"
    work.mkdir()
    (work / "a.py").write_text("# hi\n\nprint(1)\nprint(2)\n", encoding="utf-8")
    counts = run_counter(work, CounterOptions(executable=str(fake_cloc)))
    assert counts["Python"].file_count == 1
    assert counts["Python"].comment_lines == 1
    assert counts["Python"].blank_lines == 1
    assert counts["Python"].code_lines == 2


def test_missing_counter_is_an_external_tool_error(tmp_path: Path) -> None:
    with pytest.raises(ExternalToolError):
        run_counter(tmp_path, CounterOptions(executable=str(tmp_path / "no-such-cloc")))


def test_counter_that_cannot_be_executed_is_an_external_tool_error(tmp_path: Path) -> None:
    not_executable = tmp_path / "cloc"
    not_executable.write_text("#!/bin/sh\necho '{}'\n", encoding="utf-8")
    not_executable.chmod(0o644)
    with pytest.raises(ExternalToolError):
        run_counter(tmp_path, CounterOptions(executable=str(not_executable)))


def test_counter_timeout_is_an_external_tool_error(tmp_path: Path) -> None:
    slow = tmp_path / "slow-cloc"
    slow.write_text("#!/bin/sh\nexec sleep 5\n", encoding="utf-8")
    slow.chmod(0o755)
    with pytest.raises(ExternalToolError) as exc:
        run_counter(tmp_path, CounterOptions(executable=str(slow), timeout_s=1))
    assert "timed out" in str(exc.value)

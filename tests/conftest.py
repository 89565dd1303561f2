from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest

FAKE_CLOC = """#!/usr/bin/env python3
import json
import os
import sys

LANGS = {".py": "Python", ".go": "Go"}


def main() -> int:
    counts = {}
    for dirpath, dirnames, filenames in os.walk("."):
        dirnames[:] = [d for d in dirnames if d != ".git"]
        for fn in filenames:
            lang = LANGS.get(os.path.splitext(fn)[1])
            if lang is None:
                continue
            with open(os.path.join(dirpath, fn), encoding="utf-8") as f:
                lines = f.read().splitlines()
            st = counts.setdefault(lang, {"nFiles": 0, "blank": 0, "comment": 0, "code": 0})
            st["nFiles"] += 1
            for line in lines:
                s = line.strip()
                if not s:
                    st["blank"] += 1
                elif s.startswith("#") or s.startswith("//"):
                    st["comment"] += 1
                else:
                    st["code"] += 1
    if not counts:
        return 0
    out = {"header": {"cloc_url": "fake", "n_files": sum(v["nFiles"] for v in counts.values())}}
    out.update(counts)
    out["SUM"] = {k: sum(v[k] for v in counts.values()) for k in ("nFiles", "blank", "comment", "code")}
    sys.stdout.write(json.dumps(out))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
"""


def run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def init_repo(repo: Path) -> Path:
    repo.mkdir(parents=True)
    run(["git", "init", "-b", "main"], cwd=repo)
    run(["git", "config", "user.name", "Test User"], cwd=repo)
    run(["git", "config", "user.email", "test@example.com"], cwd=repo)
    run(["git", "config", "commit.gpgsign", "false"], cwd=repo)
    return repo


def commit_file(*, repo: Path, filename: str, content: str, date: str, author_email: str = "test@example.com") -> str:
    p = repo / filename
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    run(["git", "add", filename], cwd=repo)
    env = os.environ.copy()
    env["GIT_AUTHOR_DATE"] = date
    env["GIT_COMMITTER_DATE"] = date
    env["GIT_AUTHOR_EMAIL"] = author_email
    run(["git", "commit", "-m", f"update {filename}"], cwd=repo, env=env)
    return run(["git", "rev-parse", "--short", "HEAD"], cwd=repo).strip()


@pytest.fixture
def fake_cloc(tmp_path: Path) -> Path:
    path = tmp_path / "bin" / "cloc"
    path.parent.mkdir(parents=True)
    path.write_text(FAKE_CLOC, encoding="utf-8")
    path.chmod(0o755)
    return path

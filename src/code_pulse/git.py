from __future__ import annotations

import dataclasses
import datetime as dt
import subprocess
from pathlib import Path

from .errors import ExternalToolError

LOG_FORMAT = "%aI %h %ae"


@dataclasses.dataclass(frozen=True)
class CommandResult:
    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(args: list[str], cwd: Path, timeout_s: int | None = None) -> CommandResult:
    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except FileNotFoundError as e:
        return CommandResult(args=list(args), returncode=127, stdout="", stderr=str(e))
    except OSError as e:
        return CommandResult(args=list(args), returncode=126, stdout="", stderr=str(e))
    except subprocess.TimeoutExpired as e:
        return CommandResult(args=list(args), returncode=124, stdout="", stderr=f"timed out after {e.timeout}s")
    return CommandResult(args=list(args), returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


def run_git(args: list[str], cwd: Path, timeout_s: int | None = None) -> CommandResult:
    return run_command(["git", *args], cwd=cwd, timeout_s=timeout_s)


def _require(result: CommandResult, what: str) -> CommandResult:
    if not result.ok:
        raise ExternalToolError(f"{what} failed (exit {result.returncode})", command=result.args, stderr=result.stderr)
    return result


def is_cloned(repo: Path) -> bool:
    return (repo / ".git" / "config").is_file()


def clone(remote: str, folder_name: str, base_dir: Path) -> None:
    if (base_dir / folder_name).exists():
        raise ExternalToolError(f"git clone failed: destination {base_dir / folder_name} already exists")
    _require(run_git(["clone", remote, folder_name], cwd=base_dir), f"git clone {remote}")


def update(repo: Path, main_branch: str) -> None:
    _require(run_git(["reset", "--hard"], cwd=repo), "git reset")
    _require(run_git(["clean", "-fd"], cwd=repo), "git clean")
    _require(run_git(["checkout", main_branch], cwd=repo), f"git checkout {main_branch}")
    _require(run_git(["pull"], cwd=repo), "git pull")


def log(repo: Path, since: dt.date | None = None, fmt: str = LOG_FORMAT) -> list[str]:
    args = ["log", f"--pretty=format:{fmt}"]
    if since is not None:
        args.append(f"--since={since.isoformat()}T00:00:00Z")
    result = _require(run_git(args, cwd=repo), f"git log in {repo}")
    return [line for line in result.stdout.splitlines() if line.strip()]


def checkout(ref: str, repo: Path) -> None:
    _require(run_git(["checkout", "--quiet", ref], cwd=repo), f"git checkout {ref}")


def default_branch(repo: Path) -> str:
    res = run_git(["rev-parse", "--abbrev-ref", "origin/HEAD"], cwd=repo)
    if res.ok:
        ref = res.stdout.strip()
        if ref.startswith("origin/") and ref != "origin/HEAD":
            return ref[len("origin/") :]
    res = _require(run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd=repo), "git rev-parse HEAD")
    branch = res.stdout.strip()
    if not branch or branch == "HEAD":
        raise ExternalToolError(f"cannot determine the main branch of {repo} (detached HEAD)")
    return branch

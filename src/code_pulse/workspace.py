from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from . import git
from .errors import ExternalToolError


class WorkingCopy:
    """
    The on-disk clone a run checks historical commits out into.

    Every checkout goes through this handle; `session()` puts the main branch
    back when the block exits, whether or not it raised.
    """

    def __init__(self, path: Path, main_branch: str) -> None:
        self.path = path
        self.main_branch = main_branch
        self.head = main_branch

    def checkout(self, ref: str) -> None:
        git.checkout(ref, self.path)
        self.head = ref

    def restore(self) -> None:
        self.checkout(self.main_branch)

    @contextmanager
    def session(self) -> Iterator[WorkingCopy]:
        try:
            yield self
        except BaseException:
            try:
                self.restore()
            except ExternalToolError as e:
                print(f"Warning: could not restore {self.path} to {self.main_branch}: {e}", file=sys.stderr)
            raise
        self.restore()


def sync_repo(remote: str, name: str, workspace: Path, main_branch: str | None = None) -> WorkingCopy:
    """Clone `remote` into `workspace/name`, or refresh the clone that is already there."""
    workspace.mkdir(parents=True, exist_ok=True)
    path = workspace / name
    if git.is_cloned(path):
        branch = main_branch or git.default_branch(path)
        print(f"Folder {name} exists, updating it ({branch})")
        git.update(path, branch)
    else:
        print(f"Folder {name} does not exist, cloning {remote}")
        git.clone(remote, name, workspace)
        branch = main_branch or git.default_branch(path)
    return WorkingCopy(path, branch)

from __future__ import annotations

import dataclasses
import datetime as dt


@dataclasses.dataclass(frozen=True)
class Commit:
    date_time: str  # ISO-8601 author time, as printed by `git log %aI`
    short_hash: str
    author_email: str


@dataclasses.dataclass(frozen=True)
class DailyCommit:
    date: dt.date
    commit: Commit | None = None
    shadow: bool = False

    def __post_init__(self) -> None:
        if self.shadow and self.commit is not None:
            raise ValueError(f"shadow bucket {self.date} must not carry a commit")
        if not self.shadow and self.commit is None:
            raise ValueError(f"bucket {self.date} needs a commit unless it is a shadow day")


@dataclasses.dataclass(frozen=True)
class Record:
    date_time: str
    project: str
    language: str
    file_count: int = 0
    blank_lines: int = 0
    comment_lines: int = 0
    code_lines: int = 0

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.date_time, self.project, self.language)

    def redated(self, date_time: str) -> Record:
        return dataclasses.replace(self, date_time=date_time)

    def to_json(self) -> dict[str, object]:
        return {
            "dateTime": self.date_time,
            "project": self.project,
            "language": self.language,
            "fileCount": self.file_count,
            "blankLines": self.blank_lines,
            "commentLines": self.comment_lines,
            "codeLines": self.code_lines,
        }

    @classmethod
    def from_json(cls, obj: dict[str, object]) -> Record:
        return cls(
            date_time=str(obj["dateTime"]),
            project=str(obj["project"]),
            language=str(obj["language"]),
            file_count=int(obj.get("fileCount", 0) or 0),
            blank_lines=int(obj.get("blankLines", 0) or 0),
            comment_lines=int(obj.get("commentLines", 0) or 0),
            code_lines=int(obj.get("codeLines", 0) or 0),
        )

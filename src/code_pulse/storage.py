from __future__ import annotations

import json
import os
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Callable, Protocol

from .errors import PersistenceError
from .models import Record

DEFAULT_BUFFER_SIZE = 500
STORAGE_KINDS = ("sqlite", "json")

CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS ClocRecords(
  dateTime TEXT,
  project TEXT,
  language TEXT,
  fileCount INTEGER,
  blankLines INTEGER,
  commentLines INTEGER,
  codeLines INTEGER,
  PRIMARY KEY (dateTime, project, language)
)
"""

COLUMNS = "dateTime, project, language, fileCount, blankLines, commentLines, codeLines"


class Storage(Protocol):
    def init(self, path: Path) -> None: ...

    def put_records(self, records: list[Record]) -> None: ...

    def get_last_records(self, project: str) -> list[Record]: ...

    def read_records(self, project: str | None = None) -> list[Record]: ...

    def finalize(self) -> None: ...


class RecordBuffer:
    """
    Collects records and hands them to `flush` in batches of at least `size`.

    A batch is only dropped from the buffer once `flush` returned, so a failing
    write leaves it in place and earlier batches untouched.
    """

    def __init__(self, flush: Callable[[list[Record]], None], size: int = DEFAULT_BUFFER_SIZE) -> None:
        if size <= 0:
            raise ValueError(f"buffer size must be positive, got {size}")
        self._flush = flush
        self.size = size
        self.pending: list[Record] = []
        self.flushed = 0

    def put(self, records: list[Record]) -> None:
        self.pending.extend(records)
        if len(self.pending) >= self.size:
            self.flush()

    def flush(self) -> None:
        if not self.pending:
            return
        batch = list(self.pending)
        self._flush(batch)
        self.flushed += len(batch)
        self.pending = []


def _row_to_record(row: tuple) -> Record:
    return Record(
        date_time=row[0],
        project=row[1],
        language=row[2],
        file_count=int(row[3] or 0),
        blank_lines=int(row[4] or 0),
        comment_lines=int(row[5] or 0),
        code_lines=int(row[6] or 0),
    )


class SqliteStorage:
    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self.path = Path("data.db")
        self.buffer = RecordBuffer(self._write_batch, size=buffer_size)

    def _connect(self) -> sqlite3.Connection:
        # Transactions are opened explicitly in _write_batch.
        return sqlite3.connect(str(self.path), isolation_level=None)

    def init(self, path: Path) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with closing(self._connect()) as conn:
                conn.execute(CREATE_TABLE)
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Cannot initialize {self.path}: {e}") from e

    def put_records(self, records: list[Record]) -> None:
        self.buffer.put(records)

    def get_last_records(self, project: str) -> list[Record]:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute(
                    "SELECT dateTime FROM ClocRecords WHERE project = ? ORDER BY dateTime DESC LIMIT 1",
                    (project,),
                ).fetchone()
                if row is None:
                    return []
                rows = conn.execute(
                    f"SELECT {COLUMNS} FROM ClocRecords WHERE dateTime = ? AND project = ? ORDER BY language",
                    (row[0], project),
                ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        return [_row_to_record(r) for r in rows]

    def read_records(self, project: str | None = None) -> list[Record]:
        query = f"SELECT {COLUMNS} FROM ClocRecords"
        params: tuple[str, ...] = ()
        if project is not None:
            query += " WHERE project = ?"
            params = (project,)
        query += " ORDER BY dateTime, project, language"
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e
        return [_row_to_record(r) for r in rows]

    def _write_batch(self, records: list[Record]) -> None:
        try:
            with closing(self._connect()) as conn:
                conn.execute("BEGIN")
                try:
                    conn.executemany(
                        f"INSERT INTO ClocRecords({COLUMNS}) VALUES(?, ?, ?, ?, ?, ?, ?)",
                        [
                            (
                                r.date_time,
                                r.project,
                                r.language,
                                r.file_count,
                                r.blank_lines,
                                r.comment_lines,
                                r.code_lines,
                            )
                            for r in records
                        ],
                    )
                    conn.execute("COMMIT")
                except sqlite3.Error:
                    conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as e:
            raise PersistenceError(f"Writing {len(records)} records to {self.path} failed: {e}") from e

    def finalize(self) -> None:
        self.buffer.flush()


class JsonStorage:
    """All records of all projects as one JSON array in a single file."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self.path = Path("data.json")
        self.buffer = RecordBuffer(self._write_batch, size=buffer_size)

    def init(self, path: Path) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot initialize {self.path}: {e}") from e

    def _load(self) -> list[Record]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            if not isinstance(data, list):
                raise PersistenceError(f"{self.path} does not hold a JSON array")
            return [Record.from_json(obj) for obj in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Cannot read {self.path}: {e}") from e

    def put_records(self, records: list[Record]) -> None:
        self.buffer.put(records)

    def get_last_records(self, project: str) -> list[Record]:
        mine = [r for r in self._load() if r.project == project]
        if not mine:
            return []
        last = max(r.date_time for r in mine)
        return sorted((r for r in mine if r.date_time == last), key=lambda r: r.language)

    def read_records(self, project: str | None = None) -> list[Record]:
        records = [r for r in self._load() if project is None or r.project == project]
        return sorted(records, key=lambda r: r.key)

    def _write_batch(self, records: list[Record]) -> None:
        existing = self._load()
        seen = {r.key for r in existing}
        for r in records:
            if r.key in seen:
                raise PersistenceError(f"Duplicate record {r.key} in {self.path}")
            seen.add(r.key)

        payload = json.dumps([r.to_json() for r in [*existing, *records]])
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"Writing {len(records)} records to {self.path} failed: {e}") from e

    def finalize(self) -> None:
        self.buffer.flush()


def create_storage(kind: str, path: Path, *, buffer_size: int = DEFAULT_BUFFER_SIZE) -> Storage:
    storage: Storage
    if kind == "sqlite":
        storage = SqliteStorage(buffer_size=buffer_size)
    elif kind == "json":
        storage = JsonStorage(buffer_size=buffer_size)
    else:
        raise ValueError(f"Unsupported storage {kind!r} (expected one of: {', '.join(STORAGE_KINDS)})")
    storage.init(path)
    return storage

"""Persistent complaint records.

Two backings share one contract: ``JsonComplaintStore`` keeps every record in
a single JSON array file, ``SqliteComplaintStore`` keeps them in one table.
Both assume a single writer process and do no locking of their own.
"""
import json
import os
import sqlite3
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from complaint_modules import config
from complaint_modules.errors import StorageError
from complaint_modules.eventlog import utc_iso, utc_now
from complaint_modules.models import ComplaintRecord, STATUSES


def new_complaint_id() -> str:
    """8-character uppercase token shown to the user as their reference."""
    return uuid.uuid4().hex[:8].upper()


def _check_status(status: str):
    if status not in STATUSES:
        raise ValueError(f"Unknown status: {status}")


def _newest_first(records: List[ComplaintRecord]) -> List[ComplaintRecord]:
    # reversed() first so equal timestamps come out latest-insert first
    return sorted(reversed(records), key=lambda r: r.created_at or "", reverse=True)


class ComplaintStore:
    """Shared timestamp handling; subclasses implement the storage calls."""

    def __init__(self, path: str, clock: Optional[Callable[[], datetime]] = None):
        self.path = path
        self.clock = clock or utc_now

    def _now(self) -> str:
        return utc_iso(self.clock())

    def save(self, record: ComplaintRecord) -> ComplaintRecord:
        """Stamp timestamps, persist, and return the stored record."""
        _check_status(record.status)
        now = self._now()
        stored = ComplaintRecord.from_dict({**record.to_dict(), "created_at": now, "updated_at": now})
        self._insert(stored)
        return stored

    def get_by_id(self, complaint_id: str) -> Optional[ComplaintRecord]:
        raise NotImplementedError

    def get_all(self) -> List[ComplaintRecord]:
        raise NotImplementedError

    def update_status(self, complaint_id: str, status: str) -> None:
        """Set status and refresh updated_at. Unknown IDs are ignored."""
        _check_status(status)
        self._update_status(complaint_id, status, self._now())

    def check(self) -> bool:
        """Return True when the backing file can be read."""
        try:
            self.get_all()
        except StorageError:
            return False
        return True

    def _insert(self, record: ComplaintRecord) -> None:
        raise NotImplementedError

    def _update_status(self, complaint_id: str, status: str, now: str) -> None:
        raise NotImplementedError


class JsonComplaintStore(ComplaintStore):
    """Whole-file JSON array; every write rewrites the file atomically."""

    def _load(self) -> List[ComplaintRecord]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read complaint store {self.path}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"Complaint store {self.path} is not a JSON array")
        try:
            return [ComplaintRecord.from_dict(item) for item in data]
        except (KeyError, TypeError) as e:
            raise StorageError(f"Malformed record in {self.path}: {e}") from e

    def _write(self, records: List[ComplaintRecord]) -> None:
        tmp = f"{self.path}.tmp"
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump([r.to_dict() for r in records], f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write complaint store {self.path}: {e}") from e

    def _insert(self, record: ComplaintRecord) -> None:
        records = self._load()
        if any(r.id == record.id for r in records):
            raise StorageError(f"Complaint {record.id} already exists")
        records.append(record)
        self._write(records)

    def get_by_id(self, complaint_id: str) -> Optional[ComplaintRecord]:
        return next((r for r in self._load() if r.id == complaint_id), None)

    def get_all(self) -> List[ComplaintRecord]:
        return _newest_first(self._load())

    def _update_status(self, complaint_id: str, status: str, now: str) -> None:
        records = self._load()
        target = next((r for r in records if r.id == complaint_id), None)
        if target is None:
            return
        target.status = status
        target.updated_at = max(now, target.created_at or now)
        self._write(records)


SCHEMA = """
CREATE TABLE IF NOT EXISTS complaints (
    id TEXT PRIMARY KEY,
    complaint_text TEXT NOT NULL,
    transcribed_text TEXT NOT NULL,
    audio_path TEXT,
    language TEXT NOT NULL,
    category TEXT,
    status TEXT NOT NULL DEFAULT 'submitted',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

COLUMNS = ("id", "complaint_text", "transcribed_text", "audio_path", "language",
           "category", "status", "created_at", "updated_at")


class SqliteComplaintStore(ComplaintStore):
    """One ``complaints`` table; a short-lived connection per operation."""

    def __init__(self, path: str, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(path, clock)
        self._execute(SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            conn = self._connect()
            try:
                with conn:
                    rows = conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Complaint store {self.path}: {e}") from e
        return rows

    def _insert(self, record: ComplaintRecord) -> None:
        row = record.to_dict()
        placeholders = ", ".join("?" for _ in COLUMNS)
        self._execute(
            f"INSERT INTO complaints ({', '.join(COLUMNS)}) VALUES ({placeholders})",
            tuple(row[c] for c in COLUMNS),
        )

    def get_by_id(self, complaint_id: str) -> Optional[ComplaintRecord]:
        rows = self._execute("SELECT * FROM complaints WHERE id = ?", (complaint_id,))
        return ComplaintRecord.from_dict(dict(rows[0])) if rows else None

    def get_all(self) -> List[ComplaintRecord]:
        rows = self._execute("SELECT * FROM complaints ORDER BY created_at DESC, rowid DESC")
        return [ComplaintRecord.from_dict(dict(r)) for r in rows]

    def _update_status(self, complaint_id: str, status: str, now: str) -> None:
        self._execute(
            "UPDATE complaints SET status = ?, updated_at = MAX(?, created_at) WHERE id = ?",
            (status, now, complaint_id),
        )


def open_store(backend: Optional[str] = None, path: Optional[str] = None) -> ComplaintStore:
    """Compose a store from explicit arguments or environment settings."""
    backend = backend or config.store_backend()
    path = path or config.store_path(backend)
    if backend == "sqlite":
        return SqliteComplaintStore(path)
    return JsonComplaintStore(path)

"""Key-value persistence backends for learned decisions."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Protocol

from .errors import StorageError


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store, mainly for tests and one-off runs."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        self._data: Dict[str, bytes] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)
        self.writes += 1

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class SQLiteStore:
    """SQLite-backed store keeping one blob per key."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        try:
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open learning store at '{self.path}': {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def get(self, key: str) -> Optional[bytes]:
        try:
            with self._lock:
                row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot read '{key}': {exc}") from exc
        if not row:
            return None
        return bytes(row[0])

    def set(self, key: str, value: bytes) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    """
                    INSERT INTO kv(key, value, updated_at)
                    VALUES(?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                    """,
                    (key, sqlite3.Binary(value)),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot write '{key}': {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            with self._lock:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot remove '{key}': {exc}") from exc


__all__ = ["KeyValueStore", "MemoryStore", "SQLiteStore"]

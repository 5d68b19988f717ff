"""Synchronous key-value stores backing the credential store.

``SQLiteKeyValueStore`` persists across process restarts; the in-memory
store is the default for short-lived clients and tests.

Usage:
    store = SQLiteKeyValueStore(Path("~/.api-call-sdk/tokens.db").expanduser())
    store.set("access_token", "abc")
    store.get("access_token")     # "abc"
    store.delete("access_token")
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

_DDL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key     TEXT PRIMARY KEY,
    value   TEXT NOT NULL
);
"""


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for synchronous string key-value stores."""

    def get(self, key: str) -> str | None:
        """Return the value for key, or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any existing entry."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...


class MemoryKeyValueStore:
    """Process-local store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SQLiteKeyValueStore:
    """SQLite-backed store surviving process restarts."""

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_DDL)
        self._conn.commit()

    def get(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                (key, value),
            )
            self._conn.commit()

    def delete(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

"""Key/value stores backing the local rate cache.

The cache only needs ``get``/``set`` on a single key, mirroring a browser's
localStorage. ``SQLiteStore`` persists across process restarts via the
``metadata`` table; ``MemoryStore`` is process local and used by tests and
short-lived tools.

Both raise ``StorageError`` on failure; callers decide whether to swallow it.
"""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Dict, Optional, Protocol

from .schema import BASIC_UTC_NOW, init_db


class StorageError(Exception):
    pass


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SQLiteStore:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        try:
            init_db(db_path)
        except sqlite3.Error as e:
            raise StorageError(f"cannot initialise store at {db_path}: {e}") from e

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> Optional[str]:
        try:
            with self._connect() as conn:
                cur = conn.cursor()
                cur.execute("SELECT value FROM metadata WHERE key=?", (key,))
                row = cur.fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            raise StorageError(f"read failed for key '{key}': {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    f"""
                    INSERT INTO metadata (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = ({BASIC_UTC_NOW})
                    """,
                    (key, value),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"write failed for key '{key}': {e}") from e

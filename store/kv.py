"""Key/value backends holding the serialized tracker state."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Protocol, cast

from doubling_core.errors import PersistenceFailure

from .database import connect, initialize_database


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        self._entries[key] = value


class SQLiteKeyValueStore:
    """Persist string values keyed by name in a single SQLite table."""

    db_path: str

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        try:
            initialize_database(self.db_path)
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"Cannot open store at {self.db_path}: {e}") from e

    def get(self, key: str) -> str | None:
        try:
            with connect(self.db_path) as connection:
                row = cast(
                    sqlite3.Row | None,
                    connection.execute(
                        "SELECT value FROM kv_entries WHERE key = ?",
                        (key,),
                    ).fetchone(),
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to read {key!r}: {e}") from e
        if row is None:
            return None
        return cast(str, row["value"])

    def set(self, key: str, value: str) -> None:
        try:
            with connect(self.db_path) as connection:
                _ = connection.execute(
                    """
                    INSERT OR REPLACE INTO kv_entries (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    """,
                    (key, value),
                )
                connection.commit()
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Failed to write {key!r}: {e}") from e

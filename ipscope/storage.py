"""SQLite-backed durable key-value storage."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from pathlib import Path


class SQLiteStorage:
    """String key/value pairs in a single SQLite table.

    Each call opens its own connection, so several processes can share one
    database file. ``update`` holds a write lock for the whole
    read-modify-write.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.init_db()

    def _get_connection(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode; transactions are opened explicitly in update()
        conn = sqlite3.connect(str(self.path), isolation_level=None, timeout=10)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def init_db(self) -> None:
        """Create the table if it doesn't exist."""
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        finally:
            conn.close()

    def get(self, key: str) -> str | None:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def update(
        self, key: str, fn: Callable[[str | None], str | None]
    ) -> str | None:
        """Atomically replace the value under *key* with ``fn(old)``.

        *fn* receives the current value (None when absent) and returns the
        new one; returning None deletes the key. Returns the new value.
        """
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?", (key,)
                ).fetchone()
                new_value = fn(row[0] if row else None)
                if new_value is None:
                    conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                else:
                    conn.execute(
                        """
                        INSERT INTO kv (key, value) VALUES (?, ?)
                        ON CONFLICT(key) DO UPDATE SET value = excluded.value
                        """,
                        (key, new_value),
                    )
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
            return new_value
        finally:
            conn.close()

"""SQLite property store adapter.

Implements the core PropertyStorePort using a simple SQLite database with a
hard slot quota, mirroring the fixed-capacity key-value store the jobs were
designed against.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Optional

from core.errors import QuotaExceededError


class SQLitePropertyStore:
    """Thin SQLite wrapper that satisfies the PropertyStorePort contract."""

    def __init__(self, db_path: str, quota: int = 50) -> None:
        self._db_path = db_path
        self._quota = quota

    @property
    def quota(self) -> int:
        return self._quota

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - properties: one row per slot, shared by every caller
        """

        with self._connect() as conn:
            # Fields:
            # - key: property name (PRIMARY KEY)
            # - value: opaque string, JSON for notification records
            # - updated_at: last write, for diagnostics only
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS properties (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def get_property(self, key: str) -> Optional[str]:
        """Return the stored value for a key, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM properties WHERE key = ?",
                (key,),
            ).fetchone()
        return row["value"] if row else None

    def set_property(self, key: str, value: str) -> None:
        """Upsert a value; a new key needs a free slot."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            exists = conn.execute("SELECT 1 FROM properties WHERE key = ?", (key,)).fetchone()
            if exists is None:
                used = conn.execute("SELECT COUNT(*) AS used FROM properties").fetchone()["used"]
                if used >= self._quota:
                    raise QuotaExceededError(
                        f"Property store is full ({used}/{self._quota}), cannot add {key}"
                    )
            conn.execute(
                """
                INSERT INTO properties (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now.isoformat()),
            )

    def delete_property(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM properties WHERE key = ?", (key,))

    def list_properties(self) -> dict[str, str]:
        """Return every stored key and value."""

        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM properties ORDER BY key").fetchall()
        return {row["key"]: row["value"] for row in rows}

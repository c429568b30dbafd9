"""Opaque single-slot persistence for the serialized inventory."""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from ..errors import PersistenceFailure
from ..logging import get_logger


LOG = get_logger("inventory-storage")

DEFAULT_SLOT_KEY = "InventoryItems"
TABLE_NAME = "slots"


class SlotStorage:
    def load(self) -> Optional[str]:
        """Return the stored value, None if nothing was saved yet."""
        raise NotImplementedError

    def save(self, value: str) -> None:
        raise NotImplementedError


class MemorySlotStorage(SlotStorage):
    def __init__(self, value: Optional[str] = None) -> None:
        self.value = value
        self.save_count = 0

    def load(self) -> Optional[str]:
        return self.value

    def save(self, value: str) -> None:
        self.value = value
        self.save_count += 1


class SqliteSlotStorage(SlotStorage):
    """Key-value slot in an SQLite file; one row per key."""

    def __init__(self, db_path: str, *, key: str = DEFAULT_SLOT_KEY) -> None:
        self.db_path = os.path.abspath(db_path)
        self.key = key
        self._schema_ready = False
        LOG.info(f"Inventory slot '{self.key}' at {self.db_path}")

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        """Create the folder and table on first use; raises PersistenceFailure."""
        if self._schema_ready:
            return
        folder = os.path.dirname(self.db_path)
        try:
            os.makedirs(folder, exist_ok=True)
        except OSError as exc:
            raise PersistenceFailure(f"Cannot create storage folder {folder}: {exc}") from exc
        try:
            with self.connect() as conn:
                cur = conn.cursor()
                try:
                    cur.execute("PRAGMA journal_mode=WAL;")
                    cur.execute("PRAGMA synchronous=NORMAL;")
                except sqlite3.DatabaseError:
                    # Non-fatal; continue with schema creation
                    pass
                cur.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                        key        TEXT PRIMARY KEY,
                        value      TEXT NOT NULL,
                        updated_at TEXT DEFAULT (datetime('now'))
                    );
                    """
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Cannot prepare storage at {self.db_path}: {exc}") from exc
        self._schema_ready = True

    def load(self) -> Optional[str]:
        self._ensure_schema()
        try:
            with self.connect() as conn:
                cur = conn.cursor()
                cur.execute(f"SELECT value FROM {TABLE_NAME} WHERE key=?", (self.key,))
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Failed to read slot '{self.key}': {exc}") from exc
        return row[0] if row else None

    def save(self, value: str) -> None:
        self._ensure_schema()
        try:
            with self.connect() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {TABLE_NAME} (key, value, updated_at)
                    VALUES (?, ?, datetime('now'))
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at;
                    """,
                    (self.key, value),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Failed to write slot '{self.key}': {exc}") from exc

# Vault - Persistence Backends
#
# Whole-document key/value storage. The vault writes one JSON string under
# a single fixed key on every mutation; no partial writes.

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Union

from ..core.db import connect as db_connect

logger = logging.getLogger(__name__)


class KeyValueBackend(ABC):
    """String key/value storage the vault reads and writes wholesale."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def remove_item(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""


class MemoryKeyValueStore(KeyValueBackend):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> bool:
        return self._items.pop(key, None) is not None


class SQLiteKeyValueStore(KeyValueBackend):
    """SQLite key/value store.

    Args:
        db_path: Path to the SQLite file. Parent directories are created.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        with db_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        self.db_path.chmod(0o600)

    def _connect(self) -> sqlite3.Connection:
        return db_connect(self.db_path, row_factory=True)

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return row["value"]

    def set_item(self, key: str, value: str) -> None:
        """Store a value (upsert)."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, value, now),
            )
            conn.commit()
        logger.debug("Stored %d bytes under %s", len(value), key)

    def remove_item(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
            return cur.rowcount > 0

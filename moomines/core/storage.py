"""
Key-value persistence for the wallet.
Values are plain strings; the economy decides how to encode them.
"""

import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from moomines.config import PersistenceConfig, PathsConfig
from moomines.core.logger import get_logger

logger = get_logger("storage")


class PersistenceStore:
    """Durable string storage with get/set semantics."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStore(PersistenceStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._data)


class SqliteStore(PersistenceStore):
    """Thread-safe SQLite key-value table."""

    _local = threading.local()

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initializing key-value store at {self.db_path}")
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        connections = getattr(self._local, "connections", None)
        if connections is None:
            connections = self._local.connections = {}

        key = str(self.db_path)
        if key not in connections:
            conn = sqlite3.connect(key, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            connections[key] = conn
        return connections[key]

    def _init_db(self):
        conn = self._get_connection()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """
        )
        conn.commit()

    def get(self, key: str) -> Optional[str]:
        row = self._get_connection().execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
            """,
                (key, str(value), datetime.now().isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to persist {key}: {e}")
            raise

    def close(self):
        connections = getattr(self._local, "connections", {})
        conn = connections.pop(str(self.db_path), None)
        if conn is not None:
            conn.close()


def create_store(persistence: PersistenceConfig, paths: PathsConfig) -> PersistenceStore:
    """Build the store selected by `persistence.backend`."""
    backend = persistence.backend.lower()
    if backend == "memory":
        logger.info("Using in-memory store; balance will not survive restarts")
        return MemoryStore()
    if backend == "sqlite":
        return SqliteStore(paths.get_db_path())
    raise ValueError(f"Unknown persistence backend: {persistence.backend}")

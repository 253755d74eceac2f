"""SQLite-based key-value store for context persistence."""

import sqlite3
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional

from .kv_store import KeyValueStore, PersistenceError

logger = logging.getLogger(__name__)


class SQLiteKeyValueStore(KeyValueStore):
    """SQLite-based persistent key-value store."""

    def __init__(self, db_path: str = "data/contexts.db"):
        """
        Initialize SQLite key-value store.

        Args:
            db_path: Path to SQLite database file

        Raises:
            PersistenceError: If the database cannot be created
        """
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Cannot open database at {self.db_path}: {e}") from e

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        finally:
            conn.close()
        logger.info(f"Database initialized at {self.db_path}")

    def get(self, key: str) -> Optional[bytes]:
        conn = None
        try:
            conn = self._get_connection()
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM kv_entries WHERE key = ?", (key,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read {key}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

        if not row:
            return None
        return bytes(row["value"])

    def set(self, key: str, value: bytes):
        conn = None
        try:
            conn = self._get_connection()
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO kv_entries (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, sqlite3.Binary(value), datetime.now().isoformat())
            )
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to write {key}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def remove(self, key: str):
        conn = None
        try:
            conn = self._get_connection()
            cursor = conn.cursor()
            cursor.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to remove {key}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def list_keys(self) -> list[str]:
        conn = None
        try:
            conn = self._get_connection()
            cursor = conn.cursor()
            cursor.execute("SELECT key FROM kv_entries ORDER BY key")
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list keys: {e}") from e
        finally:
            if conn is not None:
                conn.close()

        return [row["key"] for row in rows]

"""
SQLite Record Storage.

Part of AMA-721: Unify web/mobile queue storage behind one capability

Device-style persistent storage for the sync queue: a single key/value
table in a local SQLite file. Mirrors the mobile app's on-device database.
"""
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Iterable, List, Optional, Union

from domain.errors import StoreNotInitializedError, StoreWriteError

logger = logging.getLogger(__name__)


class SqliteRecordStorage:
    """
    RecordStorage backed by one SQLite table.

    The connection is shared with worker threads (check_same_thread=False)
    and every statement is serialized by a lock.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Args:
            path: Database file path, or ":memory:" for a throwaway store
        """
        self.path = str(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def open(self) -> None:
        with self._lock:
            if self._conn is not None:
                return
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(self.path, check_same_thread=False)
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS records (
                        key   TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
                conn.commit()
            except sqlite3.Error as e:
                raise StoreWriteError(f"Cannot open queue database {self.path}: {e}") from e
            self._conn = conn
            logger.debug(f"SQLite record storage opened at {self.path}")

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            logger.debug("SQLite record storage closed")

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreNotInitializedError("SQLite record storage is not open")
        return self._conn

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self.conn.execute(
                "SELECT value FROM records WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self.set_many([(key, value)])

    def set_many(self, records: Iterable[tuple]) -> None:
        with self._lock:
            conn = self.conn
            try:
                with conn:
                    conn.executemany(
                        "INSERT OR REPLACE INTO records (key, value) VALUES (?, ?)",
                        list(records),
                    )
            except sqlite3.Error as e:
                raise StoreWriteError(f"Failed to write queue records: {e}") from e

    def remove(self, key: str) -> bool:
        with self._lock:
            conn = self.conn
            try:
                with conn:
                    cursor = conn.execute("DELETE FROM records WHERE key = ?", (key,))
            except sqlite3.Error as e:
                raise StoreWriteError(f"Failed to delete queue record {key}: {e}") from e
        return cursor.rowcount > 0

    def keys(self, prefix: str = "") -> List[str]:
        # Range scan instead of LIKE so "_" and "%" in prefixes are literal.
        with self._lock:
            rows = self.conn.execute(
                "SELECT key FROM records WHERE key >= ? AND key < ? ORDER BY key",
                (prefix, prefix + "\uffff"),
            ).fetchall()
        return [row[0] for row in rows]

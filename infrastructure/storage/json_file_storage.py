"""
JSON File Record Storage.

Part of AMA-721: Unify web/mobile queue storage behind one capability

Browser-style storage for the sync queue: the whole record set lives in one
JSON document, rewritten atomically on every change. An optional byte quota
mirrors browser storage limits.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from domain.errors import StoreNotInitializedError, StoreWriteError

logger = logging.getLogger(__name__)


class JsonFileRecordStorage:
    """RecordStorage persisted as a single JSON object on disk."""

    def __init__(self, path: Union[str, Path], *, max_bytes: Optional[int] = None):
        """
        Args:
            path: Location of the JSON document
            max_bytes: Optional quota; writes that would exceed it fail
        """
        self.path = Path(path)
        self.max_bytes = max_bytes
        self._records: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def open(self) -> None:
        with self._lock:
            if self._records is not None:
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                try:
                    with open(self.path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                except (OSError, json.JSONDecodeError) as e:
                    raise StoreWriteError(f"Cannot read queue file {self.path}: {e}") from e
                if not isinstance(data, dict):
                    raise StoreWriteError(f"Queue file {self.path} is not a JSON object")
                self._records = {str(k): str(v) for k, v in data.items()}
            else:
                self._records = {}
            logger.debug(f"JSON record storage opened at {self.path} ({len(self._records)} records)")

    def close(self) -> None:
        with self._lock:
            self._records = None

    @property
    def records(self) -> Dict[str, str]:
        if self._records is None:
            raise StoreNotInitializedError("JSON record storage is not open")
        return self._records

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self.records.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many([(key, value)])

    def set_many(self, records: Iterable[tuple]) -> None:
        with self._lock:
            updated = dict(self.records)
            for key, value in records:
                updated[key] = value
            self._flush(updated)
            self._records = updated

    def remove(self, key: str) -> bool:
        with self._lock:
            if key not in self.records:
                return False
            updated = dict(self.records)
            del updated[key]
            self._flush(updated)
            self._records = updated
            return True

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(k for k in self.records if k.startswith(prefix))

    def _flush(self, records: Dict[str, str]) -> None:
        """Write the document via a temp file so a crash never leaves it half-written."""
        data = json.dumps(records, separators=(",", ":"), sort_keys=True)
        if self.max_bytes is not None and len(data.encode("utf-8")) > self.max_bytes:
            raise StoreWriteError(
                f"Queue storage quota exceeded ({self.max_bytes} bytes)"
            )
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StoreWriteError(f"Failed to write queue file {self.path}: {e}") from e

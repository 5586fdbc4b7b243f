"""
Record Storage Interface (Port).

Part of AMA-721: Unify web/mobile queue storage behind one capability

The lowest-level storage capability the queue needs: get/set/remove keyed
string records. Platform adapters (SQLite on device, a JSON document for
browser-style storage) implement this; the queue store is written once on
top of it.
"""
from typing import Iterable, List, Optional, Protocol


class RecordStorage(Protocol):
    """
    Synchronous keyed-record storage.

    Implementations must be safe to call from a worker thread and must
    persist every successful set()/remove() before returning. Write
    failures are reported as domain.errors.StoreWriteError.
    """

    def open(self) -> None:
        """Acquire the underlying handle. Idempotent."""
        ...

    def close(self) -> None:
        """Release the underlying handle. Idempotent."""
        ...

    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Insert or replace a record."""
        ...

    def set_many(self, records: Iterable[tuple]) -> None:
        """Insert or replace several (key, value) records atomically."""
        ...

    def remove(self, key: str) -> bool:
        """Delete a record. Returns False if it did not exist."""
        ...

    def keys(self, prefix: str = "") -> List[str]:
        """Return keys starting with prefix, in ascending lexical order."""
        ...

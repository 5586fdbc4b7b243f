"""
Queue Store Interface (Port).

Part of AMA-720: Offline-first sync queue

Durable, ordered persistence of QueueItems, independent of the platform
storage technology. All operations are coroutines so that every store call
is a suspension point for the processor.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from domain.models import QueueItem


class QueueStore(Protocol):
    """
    Abstract interface for the pending-mutation queue.

    The store, not the processor, is the single source of truth for what is
    pending. init() must be called before any other operation.
    """

    async def init(self) -> None:
        """Acquire the storage handle. Idempotent."""
        ...

    async def close(self) -> None:
        """Release the storage handle on teardown. Idempotent."""
        ...

    async def enqueue(
        self,
        operation_type: str,
        payload: Dict[str, Any],
        *,
        user_id: Optional[str] = None,
    ) -> QueueItem:
        """
        Append a new item with the next id.

        Raises:
            StoreWriteError: If the item could not be persisted
        """
        ...

    async def peek_batch(self, limit: int) -> List[QueueItem]:
        """Return up to `limit` items in creation order without removing them."""
        ...

    async def get(self, item_id: int) -> Optional[QueueItem]:
        """Return one item or None."""
        ...

    async def remove(self, item_id: int) -> None:
        """Delete one item. A missing id is a no-op."""
        ...

    async def update(
        self,
        item_id: int,
        *,
        attempt_count: Optional[int] = None,
        last_error: Optional[str] = None,
        last_attempt_at: Optional[datetime] = None,
    ) -> Optional[QueueItem]:
        """
        Merge attempt bookkeeping into an item.

        Returns the updated item, or None (logged) if the id is gone.
        """
        ...

    async def count(self) -> int:
        """Number of pending items."""
        ...

    async def reset(self) -> None:
        """Remove every item (session boundary)."""
        ...

"""
Record-backed Queue Store.

Part of AMA-721: Unify web/mobile queue storage behind one capability

Implements the QueueStore protocol once, on top of any RecordStorage
adapter. Record layout:

    queue:seq                 last allocated item id
    queue:item:000000000042   JSON-serialized QueueItem
    queue:corrupt:...         records that failed to parse, kept for diagnosis

Item keys are zero-padded so lexical key order equals creation order. The
sequence counter survives reset() so ids stay unique for the store's
lifetime.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from application.ports import RecordStorage
from domain.errors import StoreNotInitializedError
from domain.models import QueueItem

logger = logging.getLogger(__name__)

SEQ_KEY = "queue:seq"
ITEM_PREFIX = "queue:item:"
CORRUPT_PREFIX = "queue:corrupt:"
ID_WIDTH = 12


def item_key(item_id: int) -> str:
    return f"{ITEM_PREFIX}{item_id:0{ID_WIDTH}d}"


class RecordQueueStore:
    """
    QueueStore implementation over a keyed-record storage capability.

    Blocking storage calls run in a worker thread. Read-modify-write
    sequences (id allocation, bookkeeping updates) are serialized by an
    asyncio lock.

    Usage:
        >>> store = RecordQueueStore(SqliteRecordStorage("/data/sync-queue.db"))
        >>> async with store:
        ...     item = await store.enqueue("update_set", {"id": "set-1"})
        ...     pending = await store.peek_batch(5)
    """

    def __init__(self, storage: RecordStorage):
        self._storage = storage
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def init(self) -> None:
        if self._initialized:
            return
        await asyncio.to_thread(self._storage.open)
        self._initialized = True

    async def close(self) -> None:
        if not self._initialized:
            return
        async with self._lock:
            await asyncio.to_thread(self._storage.close)
            self._initialized = False

    async def __aenter__(self) -> "RecordQueueStore":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _require_init(self) -> None:
        if not self._initialized:
            raise StoreNotInitializedError("Queue store used before init()")

    # =========================================================================
    # QueueStore Protocol Methods
    # =========================================================================

    async def enqueue(
        self,
        operation_type: str,
        payload: Dict[str, Any],
        *,
        user_id: Optional[str] = None,
    ) -> QueueItem:
        self._require_init()
        async with self._lock:
            return await asyncio.to_thread(self._enqueue_sync, operation_type, payload, user_id)

    def _enqueue_sync(
        self, operation_type: str, payload: Dict[str, Any], user_id: Optional[str]
    ) -> QueueItem:
        last_id = int(self._storage.get(SEQ_KEY) or 0)
        item = QueueItem(
            id=last_id + 1,
            operation_type=operation_type,
            payload=payload,
            user_id=user_id,
        )
        # Counter and item are written together so a crash cannot reuse an id.
        self._storage.set_many([
            (SEQ_KEY, str(item.id)),
            (item_key(item.id), item.model_dump_json()),
        ])
        return item

    async def peek_batch(self, limit: int) -> List[QueueItem]:
        self._require_init()
        if limit <= 0:
            return []
        async with self._lock:
            return await asyncio.to_thread(self._peek_sync, limit)

    def _peek_sync(self, limit: int) -> List[QueueItem]:
        items: List[QueueItem] = []
        for key in self._storage.keys(ITEM_PREFIX):
            item = self._load(key)
            if item is not None:
                items.append(item)
            if len(items) >= limit:
                break
        return items

    async def get(self, item_id: int) -> Optional[QueueItem]:
        self._require_init()
        async with self._lock:
            return await asyncio.to_thread(self._load, item_key(item_id))

    async def remove(self, item_id: int) -> None:
        self._require_init()
        async with self._lock:
            removed = await asyncio.to_thread(self._storage.remove, item_key(item_id))
        if not removed:
            logger.debug(f"Queue item {item_id} already removed")

    async def update(
        self,
        item_id: int,
        *,
        attempt_count: Optional[int] = None,
        last_error: Optional[str] = None,
        last_attempt_at: Optional[datetime] = None,
    ) -> Optional[QueueItem]:
        self._require_init()
        patch: Dict[str, Any] = {}
        if attempt_count is not None:
            patch["attempt_count"] = attempt_count
        if last_error is not None:
            patch["last_error"] = last_error
        if last_attempt_at is not None:
            patch["last_attempt_at"] = last_attempt_at

        async with self._lock:
            return await asyncio.to_thread(self._update_sync, item_id, patch)

    def _update_sync(self, item_id: int, patch: Dict[str, Any]) -> Optional[QueueItem]:
        key = item_key(item_id)
        item = self._load(key)
        if item is None:
            logger.warning(f"Cannot update queue item {item_id}: no longer in the store")
            return None
        updated = item.model_copy(update=patch)
        self._storage.set(key, updated.model_dump_json())
        return updated

    async def count(self) -> int:
        self._require_init()
        async with self._lock:
            keys = await asyncio.to_thread(self._storage.keys, ITEM_PREFIX)
        return len(keys)

    async def reset(self) -> None:
        self._require_init()
        async with self._lock:
            removed = await asyncio.to_thread(self._reset_sync)
        logger.info(f"Queue store reset ({removed} item(s) purged)")

    def _reset_sync(self) -> int:
        keys = self._storage.keys(ITEM_PREFIX) + self._storage.keys(CORRUPT_PREFIX)
        for key in keys:
            self._storage.remove(key)
        return len(keys)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, key: str) -> Optional[QueueItem]:
        raw = self._storage.get(key)
        if raw is None:
            return None
        try:
            return QueueItem.model_validate_json(raw)
        except ValidationError as e:
            # Keep the bytes for diagnosis but stop it from blocking the queue.
            corrupt_key = CORRUPT_PREFIX + key[len(ITEM_PREFIX):]
            logger.error(f"Corrupt queue record {key} moved to {corrupt_key}: {e}")
            self._storage.set(corrupt_key, raw)
            self._storage.remove(key)
            return None

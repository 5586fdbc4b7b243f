"""
Offline Sync Manager - composition root for one client session.

Part of AMA-720: Offline-first sync queue
Updated in AMA-724: Purge queued mutations at the session boundary

Owns exactly one queue store and one processor. This is the surface the UI
adapter talks to: enqueue a mutation, read or subscribe to status, and end
the session so one user's pending mutations can never be replayed under
another user's credentials.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from application.ports import NetworkObserver, QueueStore, RemoteApiClient
from application.services.sync_queue_processor import (
    StatusListener,
    SyncQueueProcessor,
    TriggerReason,
)
from domain.models import QueueItem, SyncStatus

logger = logging.getLogger(__name__)


class SyncManagerError(Exception):
    """Raised on lifecycle misuse (for example a second start())."""


class OfflineSyncManager:
    """
    Enqueue API, status subscription and session boundary for the sync queue.

    Usage:
        >>> manager = OfflineSyncManager(store, observer, client, processor_options={...})
        >>> await manager.start()
        >>> await manager.begin_session("user-1", access_token)
        >>> await manager.enqueue("update_set", {"id": "set-1", "reps": 8})
        >>> await manager.end_session()   # on logout
        >>> await manager.stop()          # on app teardown
    """

    def __init__(
        self,
        store: QueueStore,
        observer: NetworkObserver,
        client: RemoteApiClient,
        *,
        processor_options: Optional[Dict[str, Any]] = None,
    ):
        self.store = store
        self.observer = observer
        self.client = client
        self.processor = SyncQueueProcessor(
            store,
            observer,
            client,
            require_session=True,
            **(processor_options or {}),
        )
        self._started = False
        self._user_id: Optional[str] = None

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def status(self) -> SyncStatus:
        return self.processor.status

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Acquire the store, start observing connectivity and start the processor."""
        if self._started:
            # Two processors against one store would double-process items.
            raise SyncManagerError("Sync manager is already running")

        await self.store.init()
        await self.observer.start()
        await self.processor.start()
        self._started = True
        logger.info("Offline sync manager started")

    async def stop(self) -> None:
        """Teardown: stop the processor, then release observer and store."""
        if not self._started:
            return
        await self.processor.stop()
        await self.observer.stop()
        await self.store.close()
        self._started = False
        logger.info("Offline sync manager stopped")

    async def __aenter__(self) -> "OfflineSyncManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    # =========================================================================
    # Session boundary
    # =========================================================================

    async def begin_session(self, user_id: str, access_token: Optional[str] = None) -> None:
        """
        Bind a signed-in identity and start replaying its mutations.

        Args:
            user_id: Identity that owns subsequently enqueued mutations
            access_token: JWT forwarded to the backend on every call
        """
        if self._user_id is not None and self._user_id != user_id:
            # Switching accounts without logging out still must not leak.
            logger.warning("New session began without ending the previous one; purging queue")
            await self.end_session()

        self._user_id = user_id
        self.client.set_access_token(access_token)
        self.processor.bind_session(user_id)
        await self.processor.refresh_status()
        await self.processor.trigger(TriggerReason.MANUAL)

    async def end_session(self) -> None:
        """
        Session boundary hook: call on logout.

        Detaches the identity, waits for an in-flight pass, purges every
        queued mutation and clears the client's credentials.
        """
        self.processor.clear_session()
        await self.processor.wait_until_idle()
        await self.store.reset()
        self.client.set_access_token(None)
        self._user_id = None
        await self.processor.refresh_status()
        logger.info("Sync session ended; queue purged")

    async def reset(self) -> None:
        """Purge the queue (alias for end_session)."""
        await self.end_session()

    # =========================================================================
    # Enqueue API
    # =========================================================================

    async def enqueue(self, operation_type: str, payload: Dict[str, Any]) -> QueueItem:
        """
        Record a mutation for eventual replay.

        Returns once the mutation is persisted locally, not once it is synced.

        Raises:
            StoreWriteError: If the mutation could not be persisted
        """
        item = await self.store.enqueue(operation_type, payload, user_id=self._user_id)
        logger.info(f"Enqueued {operation_type} item {item.id}")
        self.processor.note_enqueued()
        await self.processor.refresh_status()
        return item

    async def pending(self, limit: int = 50) -> List[QueueItem]:
        """Pending mutations in replay order, oldest first."""
        return await self.store.peek_batch(limit)

    # =========================================================================
    # Status
    # =========================================================================

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        return self.processor.subscribe(listener)

    async def drain_now(self) -> SyncStatus:
        """Run a manual drain pass and return the resulting status."""
        await self.processor.trigger(TriggerReason.MANUAL)
        return self.processor.status

"""
Fake Implementations for Testing.

Part of AMA-720: Offline-first sync queue

In-memory fakes for the sync queue ports, so the processor and manager can
be exercised without a database, a network or a Supabase project.

Features:
- All fakes implement the same Protocol interfaces as real implementations
- Supports seeding with test data
- Supports reset() for test isolation
- Factory functions for common test scenarios

Usage:
    from tests.fakes import FakeRemoteApiClient, create_queue_store

    store, storage = await create_queue_store(items=[("update_set", {"id": "s1"})])
    client = FakeRemoteApiClient()
    client.fail_next(TransientRemoteError("503"))
"""
from typing import Any, Dict, Iterable, Optional, Tuple

from application.services import BackoffPolicy, SyncQueueProcessor
from infrastructure.storage import RecordQueueStore
from tests.fakes.network_observer import FakeNetworkObserver
from tests.fakes.record_storage import InMemoryRecordStorage
from tests.fakes.remote_client import FakeRemoteApiClient, RemoteCall


# =============================================================================
# Factory Functions
# =============================================================================


async def create_queue_store(
    *,
    storage: Optional[InMemoryRecordStorage] = None,
    items: Iterable[Tuple[str, Dict[str, Any]]] = (),
    user_id: Optional[str] = None,
) -> Tuple[RecordQueueStore, InMemoryRecordStorage]:
    """
    Create an initialized RecordQueueStore over in-memory storage.

    Args:
        storage: Existing storage to reopen (simulates a restart)
        items: (operation_type, payload) pairs to enqueue in order
        user_id: Owner recorded on the seeded items

    Returns:
        The store and its backing storage
    """
    storage = storage or InMemoryRecordStorage()
    store = RecordQueueStore(storage)
    await store.init()
    for operation_type, payload in items:
        await store.enqueue(operation_type, payload, user_id=user_id)
    return store, storage


def create_processor(
    store: RecordQueueStore,
    *,
    online: bool = True,
    client: Optional[FakeRemoteApiClient] = None,
    observer: Optional[FakeNetworkObserver] = None,
    **options: Any,
) -> SyncQueueProcessor:
    """
    Create a SyncQueueProcessor wired to fakes.

    Backoff defaults to zero delay so consecutive triggers are not blocked;
    pass backoff=... to test backoff itself.
    """
    options.setdefault("backoff", BackoffPolicy(strategy="fixed", base_seconds=0.0, max_seconds=1.0))
    return SyncQueueProcessor(
        store,
        observer or FakeNetworkObserver(online=online),
        client or FakeRemoteApiClient(),
        **options,
    )


__all__ = [
    # Fakes
    "InMemoryRecordStorage",
    "FakeRemoteApiClient",
    "FakeNetworkObserver",
    "RemoteCall",
    # Factories
    "create_queue_store",
    "create_processor",
]

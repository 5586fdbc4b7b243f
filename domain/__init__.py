"""
Domain layer for the offline sync queue.

This package contains pure domain models and the error taxonomy. It does
not depend on storage, network or remote API implementations.

Part of AMA-720: Offline-first sync queue
"""

from domain.errors import (
    AbandonedError,
    ReachabilityUncertain,
    SessionMismatchError,
    StoreNotInitializedError,
    StoreWriteError,
    SyncQueueError,
    TransientRemoteError,
)
from domain.models import ProcessorState, QueueItem, SyncStatus

__all__ = [
    "QueueItem",
    "ProcessorState",
    "SyncStatus",
    "SyncQueueError",
    "StoreWriteError",
    "StoreNotInitializedError",
    "TransientRemoteError",
    "ReachabilityUncertain",
    "AbandonedError",
    "SessionMismatchError",
]

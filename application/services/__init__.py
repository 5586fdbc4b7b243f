"""
Application services for the offline sync queue.

- SyncQueueProcessor: Idle/Draining/Backoff drain state machine
- OfflineSyncManager: enqueue API, status and session boundary
- BackoffPolicy: delay after a failed attempt
"""

from application.services.backoff import BackoffPolicy
from application.services.sync_manager import OfflineSyncManager, SyncManagerError
from application.services.sync_queue_processor import SyncQueueProcessor, TriggerReason

__all__ = [
    "BackoffPolicy",
    "OfflineSyncManager",
    "SyncManagerError",
    "SyncQueueProcessor",
    "TriggerReason",
]

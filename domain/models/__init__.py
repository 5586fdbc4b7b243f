"""
Domain models for the offline sync queue.

These models are independent of infrastructure concerns (storage backend,
network stack, remote API):
- QueueItem: a pending mutation awaiting replay
- SyncStatus: snapshot of processor state for UI affordances
- ProcessorState: Idle / Draining / Backoff

Part of AMA-720: Offline-first sync queue

Usage:
    >>> from domain.models import QueueItem
    >>> item = QueueItem(id=1, operation_type="update_profile", payload={"id": "u1"})
"""

from domain.models.queue_item import QueueItem, utc_now
from domain.models.sync_status import ProcessorState, SyncStatus

__all__ = [
    "QueueItem",
    "utc_now",
    "ProcessorState",
    "SyncStatus",
]

"""
Error taxonomy for the offline sync queue.

Part of AMA-720: Offline-first sync queue

Local store failures are raised synchronously to the enqueuing caller.
Remote failures never propagate out of the processor; they are delivered
through the on_error callback and the status `last_error`.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from domain.models.queue_item import QueueItem


class SyncQueueError(Exception):
    """Base class for all sync queue errors."""


class StoreWriteError(SyncQueueError):
    """Local persistence failed (quota exceeded, I/O error, ...)."""


class StoreNotInitializedError(SyncQueueError):
    """A store operation was attempted before init() or after close()."""


class TransientRemoteError(SyncQueueError):
    """A remote call failed; the item stays queued and is retried later."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class ReachabilityUncertain(TransientRemoteError):
    """
    The observer reported online but the backend could not be reached.

    Treated as "cannot currently sync", never as grounds for discarding data.
    """


class AbandonedError(SyncQueueError):
    """An item exceeded the retry ceiling and was permanently discarded."""

    def __init__(self, item: "QueueItem", cause: Optional[BaseException] = None):
        message = (
            f"Abandoned {item.operation_type} item {item.id} "
            f"after {item.attempt_count} attempts"
        )
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.item = item
        self.cause = cause


class SessionMismatchError(SyncQueueError):
    """A queued item belongs to a different identity than the active session."""

    def __init__(self, item: "QueueItem", session_user_id: Optional[str]):
        super().__init__(
            f"Item {item.id} belongs to another session; discarded without sending"
        )
        self.item = item
        self.session_user_id = session_user_id

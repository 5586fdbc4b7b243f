"""
Sync status snapshot published by the queue processor.

Part of AMA-720: Offline-first sync queue
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ProcessorState(str, Enum):
    """States of the sync queue processor."""

    IDLE = "idle"
    DRAINING = "draining"
    BACKOFF = "backoff"


@dataclass(frozen=True)
class SyncStatus:
    """
    Point-in-time view of the sync queue for UI affordances.

    `queue_length > 0` drives the "pending sync" indicator and a non-null
    `last_error` drives "sync degraded".
    """

    state: ProcessorState = ProcessorState.IDLE
    queue_length: int = 0
    last_error: Optional[BaseException] = None
    is_online: bool = False
    last_synced_at: Optional[datetime] = None
    backoff_until: Optional[datetime] = None

    @property
    def is_syncing(self) -> bool:
        return self.state == ProcessorState.DRAINING

    def evolve(self, **changes: Any) -> "SyncStatus":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly representation."""
        return {
            "state": self.state.value,
            "is_syncing": self.is_syncing,
            "queue_length": self.queue_length,
            "last_error": str(self.last_error) if self.last_error else None,
            "last_error_type": type(self.last_error).__name__ if self.last_error else None,
            "is_online": self.is_online,
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "backoff_until": self.backoff_until.isoformat() if self.backoff_until else None,
        }

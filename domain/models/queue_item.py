"""
QueueItem - a single pending mutation in the offline sync queue.

Part of AMA-720: Offline-first sync queue

A QueueItem is created when the UI records a mutation (a logged set, a
session rating, a profile edit) and lives in the local queue store until the
remote backend acknowledges it or it is abandoned after the retry ceiling.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class QueueItem(BaseModel):
    """
    A pending mutation awaiting replay against the remote backend.

    Items are immutable; bookkeeping between attempts produces a new copy
    via with_failure(). Ordering is by `id`, which the store allocates from
    a monotonic sequence.

    Examples:
        >>> item = QueueItem(
        ...     id=1,
        ...     operation_type="update_set",
        ...     payload={"id": "set-1", "session_id": "s-1", "weight_kg": 80},
        ... )
        >>> failed = item.with_failure("503 Service Unavailable")
        >>> failed.attempt_count
        1
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Monotonic, creation-ordered identifier")
    operation_type: str = Field(
        ..., min_length=1, max_length=200, description="Remote mutation tag"
    )
    payload: Dict[str, Any] = Field(
        default_factory=dict, description="Operation-specific JSON payload"
    )
    attempt_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    last_error: Optional[str] = None
    last_attempt_at: Optional[datetime] = None
    user_id: Optional[str] = Field(
        default=None, description="Identity whose session enqueued the item"
    )

    @field_validator("payload")
    @classmethod
    def validate_payload(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Reject payloads that cannot round-trip through JSON."""
        try:
            json.dumps(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"payload must be JSON-serializable: {e}")
        return v

    @field_validator("operation_type")
    @classmethod
    def validate_operation_type(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("operation_type must not be blank")
        return v

    # -------------------------------------------------------------------------
    # Bookkeeping
    # -------------------------------------------------------------------------

    def with_failure(self, error: str, at: Optional[datetime] = None) -> "QueueItem":
        """Return a copy with one more attempt and the failure recorded."""
        return self.model_copy(
            update={
                "attempt_count": self.attempt_count + 1,
                "last_error": error,
                "last_attempt_at": at or utc_now(),
            }
        )

    def is_exhausted(self, max_attempts: int) -> bool:
        """True once the item has used up its retry budget."""
        return self.attempt_count >= max_attempts

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        """Seconds since the item was enqueued."""
        return ((now or utc_now()) - self.created_at).total_seconds()

    def belongs_to(self, user_id: Optional[str]) -> bool:
        """Items without an owner are replayable by any session."""
        return self.user_id is None or self.user_id == user_id

"""
Pydantic schemas for API requests and responses.

Organized by feature/domain:
- sync_queue: Enqueue, listing, network state and session models
"""

from api.schemas.sync_queue import (
    EnqueueRequest,
    EnqueueResponse,
    NetworkStateRequest,
    QueueListResponse,
    SessionRequest,
)

__all__ = [
    "EnqueueRequest",
    "EnqueueResponse",
    "NetworkStateRequest",
    "QueueListResponse",
    "SessionRequest",
]

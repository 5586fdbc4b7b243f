"""
Request/response models for the sync queue endpoints.

Part of AMA-723: Local HTTP surface for the UI adapter
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from domain.models import QueueItem


class EnqueueRequest(BaseModel):
    """A mutation the UI wants replayed once online."""
    operation_type: str = Field(
        min_length=1,
        max_length=128,
        description="Operation tag, e.g. 'update_set' or 'workout_sessions.upsert'",
    )
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("operation_type")
    @classmethod
    def strip_operation_type(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("operation_type must not be blank")
        return v


class EnqueueResponse(BaseModel):
    item: QueueItem
    status: Dict[str, Any]


class QueueListResponse(BaseModel):
    items: List[QueueItem]
    count: int


class NetworkStateRequest(BaseModel):
    """Browser online/offline event forwarded by the UI."""
    online: bool


class SessionRequest(BaseModel):
    user_id: str = Field(min_length=1)
    access_token: Optional[str] = Field(None, description="JWT forwarded to the backend")

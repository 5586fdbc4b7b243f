"""
Remote API Client Interface (Port).

Part of AMA-720: Offline-first sync queue

Executes one queued mutation against the backend. Implementations should
configure a request timeout so a hung call cannot block the queue, and
should be idempotent from the queue's point of view where possible
(upserts keyed by record id).
"""
from typing import Any, Dict, Optional, Protocol


class RemoteApiClient(Protocol):
    """Abstract interface for replaying a mutation remotely."""

    async def execute(self, operation_type: str, payload: Dict[str, Any]) -> None:
        """
        Apply one mutation.

        Returns normally on success.

        Raises:
            TransientRemoteError: The call failed and may be retried later
            ReachabilityUncertain: The backend could not be reached
        """
        ...

    def set_access_token(self, access_token: Optional[str]) -> None:
        """Bind (or clear, with None) the session credentials used for calls."""
        ...

"""
Network State Observer Interface (Port).

Part of AMA-720: Offline-first sync queue

Produces a single best-effort reachability signal from platform
connectivity primitives. The processor treats a failed send as equally
valid "offline" evidence regardless of what the observer last reported.
"""
from typing import Callable, Protocol

# Listener receives the new reachability value.
ReachabilityListener = Callable[[bool], None]
# Listener invoked when the app returns to the foreground.
ForegroundListener = Callable[[], None]
Unsubscribe = Callable[[], None]


class NetworkObserver(Protocol):
    """Explicitly constructed observer with a subscribe/unsubscribe lifecycle."""

    @property
    def is_online(self) -> bool:
        """Current reachability, queryable synchronously."""
        ...

    def subscribe(self, listener: ReachabilityListener) -> Unsubscribe:
        """Register for reachability changes. Returns an unsubscribe callable."""
        ...

    def on_foreground(self, listener: ForegroundListener) -> Unsubscribe:
        """Register for app-foreground events. Returns an unsubscribe callable."""
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

"""
Fake NetworkObserver for tests.

Part of AMA-722: Explicit network observer instances

Synchronous and undebounced: set_online() notifies listeners immediately,
so tests control reachability transitions exactly.
"""
from typing import Callable, List

from application.ports import ForegroundListener, ReachabilityListener, Unsubscribe


class FakeNetworkObserver:
    """Test double for the reachability signal."""

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: List[ReachabilityListener] = []
        self._foreground_listeners: List[ForegroundListener] = []
        self.started = False
        self.stopped = False

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ReachabilityListener) -> Unsubscribe:
        return self._add(self._listeners, listener)

    def on_foreground(self, listener: ForegroundListener) -> Unsubscribe:
        return self._add(self._foreground_listeners, listener)

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    # =========================================================================
    # Test Controls
    # =========================================================================

    def set_online(self, online: bool) -> None:
        if online == self._online:
            return
        self._online = online
        for listener in list(self._listeners):
            listener(online)

    def report(self, reachable: bool) -> None:
        self.set_online(reachable)

    def notify_foreground(self) -> None:
        for listener in list(self._foreground_listeners):
            listener()

    @property
    def listener_count(self) -> int:
        return len(self._listeners) + len(self._foreground_listeners)

    @staticmethod
    def _add(listeners: List[Callable], listener: Callable) -> Unsubscribe:
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

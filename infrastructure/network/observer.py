"""
Reachability observers.

Part of AMA-722: Explicit network observer instances

Replaces ambient, module-level connectivity listeners with explicitly
constructed observers that have a subscribe/unsubscribe lifecycle. Raw
platform samples go through report(); a change is only emitted once it has
been stable for the debounce window, which keeps app resume from flapping
the signal.
"""
import asyncio
import logging
from typing import Callable, List, Optional

from application.ports import ForegroundListener, ReachabilityListener, Unsubscribe

logger = logging.getLogger(__name__)


class ReachabilityObserver:
    """
    Debounced reachability signal.

    Usage:
        >>> observer = ReachabilityObserver(initial=False, debounce_seconds=1.0)
        >>> unsubscribe = observer.subscribe(lambda online: print(online))
        >>> observer.report(True)   # emitted after 1s if not contradicted
    """

    def __init__(self, *, initial: bool = False, debounce_seconds: float = 0.0):
        if debounce_seconds < 0:
            raise ValueError(f"debounce_seconds must be >= 0, got {debounce_seconds}")
        self._online = initial
        self.debounce_seconds = debounce_seconds
        self._pending: Optional[bool] = None
        self._pending_handle: Optional[asyncio.TimerHandle] = None
        self._listeners: List[ReachabilityListener] = []
        self._foreground_listeners: List[ForegroundListener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ReachabilityListener) -> Unsubscribe:
        return self._add(self._listeners, listener)

    def on_foreground(self, listener: ForegroundListener) -> Unsubscribe:
        return self._add(self._foreground_listeners, listener)

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        self._cancel_pending()

    def report(self, reachable: bool) -> None:
        """Feed a raw connectivity sample from the platform."""
        if reachable == self._online:
            # Flapped back before the debounce elapsed.
            self._cancel_pending()
            return
        if self.debounce_seconds <= 0:
            self._apply(reachable)
            return
        if self._pending == reachable and self._pending_handle is not None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._apply(reachable)
            return
        self._cancel_pending()
        self._pending = reachable
        self._pending_handle = loop.call_later(self.debounce_seconds, self._apply, reachable)

    def notify_foreground(self) -> None:
        """The app returned to the foreground."""
        for listener in list(self._foreground_listeners):
            try:
                listener()
            except Exception as e:
                logger.error(f"Foreground listener raised: {e}", exc_info=True)

    def _apply(self, reachable: bool) -> None:
        self._cancel_pending()
        if reachable == self._online:
            return
        self._online = reachable
        logger.info(f"Reachability changed: {'online' if reachable else 'offline'}")
        for listener in list(self._listeners):
            try:
                listener(reachable)
            except Exception as e:
                logger.error(f"Reachability listener raised: {e}", exc_info=True)

    def _cancel_pending(self) -> None:
        if self._pending_handle is not None:
            self._pending_handle.cancel()
        self._pending_handle = None
        self._pending = None

    @staticmethod
    def _add(listeners: List[Callable], listener: Callable) -> Unsubscribe:
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe


class ManualNetworkObserver(ReachabilityObserver):
    """
    Observer driven by the host UI.

    The browser's online/offline events (or the HTTP surface's
    POST /sync/network) call set_online().
    """

    def set_online(self, online: bool) -> None:
        self.report(online)

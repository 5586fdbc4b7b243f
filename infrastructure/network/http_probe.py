"""
HTTP reachability probe.

Part of AMA-722: Explicit network observer instances

Polls a lightweight backend endpoint (by default the Supabase auth health
check) and reports the result to the debounced observer. Any HTTP response
below 500 counts as reachable; transport errors, timeouts and 5xx do not.
"""
import asyncio
import logging
from typing import Dict, Optional

import httpx

from infrastructure.network.observer import ReachabilityObserver

logger = logging.getLogger(__name__)

DEFAULT_PROBE_INTERVAL_SECONDS = 15.0
DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


class HttpReachabilityObserver(ReachabilityObserver):
    """Reachability from periodic HTTP probes."""

    def __init__(
        self,
        probe_url: str,
        *,
        interval_seconds: float = DEFAULT_PROBE_INTERVAL_SECONDS,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        headers: Optional[Dict[str, str]] = None,
        debounce_seconds: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(initial=False, debounce_seconds=debounce_seconds)
        self.probe_url = probe_url
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self.headers = headers or {}
        self._client = client
        self._owns_client = client is None
        self._task: Optional[asyncio.Task] = None
        self._foreground_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._task is not None:
            return
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_seconds)
            self._owns_client = True
        # The first sample is applied without debounce so start-up sees the real state.
        self._apply(await self._probe())
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Reachability probe started for {self.probe_url}")

    async def stop(self) -> None:
        await super().stop()
        # Both tasks use the client, so they end before it is closed.
        for task in (self._task, self._foreground_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._task = None
        self._foreground_task = None
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def probe_once(self) -> bool:
        """Probe now and feed the result through the debounce."""
        reachable = await self._probe()
        self.report(reachable)
        return reachable

    def notify_foreground(self) -> None:
        """Re-probe on resume, then notify foreground listeners."""
        if self._client is None:
            super().notify_foreground()
            return
        if self._foreground_task is not None and not self._foreground_task.done():
            return
        self._foreground_task = asyncio.get_running_loop().create_task(self._foreground_probe())

    async def _foreground_probe(self) -> None:
        # Resume is a deliberate user action: apply without debounce.
        self._apply(await self._probe())
        super().notify_foreground()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.probe_once()

    async def _probe(self) -> bool:
        if self._client is None:
            return False
        try:
            response = await self._client.get(self.probe_url, headers=self.headers)
        except httpx.HTTPError as e:
            logger.debug(f"Reachability probe failed: {e}")
            return False
        return response.status_code < 500

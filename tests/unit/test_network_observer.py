"""
Unit tests for the reachability observers.

Part of AMA-722: Explicit network observer instances

Tests for:
- Subscribe/unsubscribe lifecycle
- Debounce: flaps shorter than the window are never emitted
- Foreground notifications
- HttpReachabilityObserver probe classification (httpx.MockTransport)
"""

import asyncio

import httpx
import pytest

from infrastructure.network import (
    HttpReachabilityObserver,
    ManualNetworkObserver,
    ReachabilityObserver,
)

pytestmark = pytest.mark.unit


class TestSubscription:
    """Tests for subscribe() / on_foreground()."""

    def test_listener_notified_on_change_only(self):
        observer = ManualNetworkObserver(initial=False)
        seen = []
        observer.subscribe(seen.append)

        observer.set_online(True)
        observer.set_online(True)
        observer.set_online(False)

        assert seen == [True, False]
        assert observer.is_online is False

    def test_unsubscribe_stops_notifications(self):
        observer = ManualNetworkObserver(initial=False)
        seen = []
        unsubscribe = observer.subscribe(seen.append)

        unsubscribe()
        unsubscribe()
        observer.set_online(True)

        assert seen == []

    def test_listener_exception_does_not_block_others(self, caplog):
        observer = ManualNetworkObserver(initial=False)
        seen = []

        def broken(_online):
            raise RuntimeError("listener bug")

        observer.subscribe(broken)
        observer.subscribe(seen.append)
        observer.set_online(True)

        assert seen == [True]
        assert "listener bug" in caplog.text

    def test_foreground_listeners(self):
        observer = ManualNetworkObserver(initial=True)
        calls = []
        observer.on_foreground(lambda: calls.append("fg"))

        observer.notify_foreground()

        assert calls == ["fg"]

    def test_negative_debounce_rejected(self):
        with pytest.raises(ValueError):
            ReachabilityObserver(debounce_seconds=-1)


class TestDebounce:
    """Tests for debounced report()."""

    @pytest.mark.asyncio
    async def test_change_emitted_after_window(self):
        observer = ReachabilityObserver(initial=False, debounce_seconds=0.05)
        seen = []
        observer.subscribe(seen.append)

        observer.report(True)
        assert observer.is_online is False

        await asyncio.sleep(0.1)

        assert observer.is_online is True
        assert seen == [True]

    @pytest.mark.asyncio
    async def test_flap_inside_window_is_suppressed(self):
        observer = ReachabilityObserver(initial=True, debounce_seconds=0.05)
        seen = []
        observer.subscribe(seen.append)

        observer.report(False)
        observer.report(True)
        await asyncio.sleep(0.1)

        assert seen == []
        assert observer.is_online is True

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_change(self):
        observer = ReachabilityObserver(initial=False, debounce_seconds=0.05)
        seen = []
        observer.subscribe(seen.append)

        observer.report(True)
        await observer.stop()
        await asyncio.sleep(0.1)

        assert seen == []

    def test_without_running_loop_applies_immediately(self):
        observer = ReachabilityObserver(initial=False, debounce_seconds=5)
        observer.report(True)
        assert observer.is_online is True


# =============================================================================
# HTTP probe
# =============================================================================


def _client(status_code=None, error=None):
    def handler(request):
        if error is not None:
            raise error
        return httpx.Response(status_code)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHttpReachabilityObserver:
    """Tests for HttpReachabilityObserver probing."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,expected", [(200, True), (401, True), (503, False)])
    async def test_start_applies_first_probe(self, status_code, expected):
        client = _client(status_code)
        observer = HttpReachabilityObserver(
            "https://test.supabase.co/auth/v1/health", interval_seconds=60, client=client
        )

        await observer.start()
        try:
            assert observer.is_online is expected
        finally:
            await observer.stop()
            await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_means_offline(self):
        client = _client(error=httpx.ConnectError("no route to host"))
        observer = HttpReachabilityObserver("https://x/health", interval_seconds=60, client=client)

        assert await observer.probe_once() is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_foreground_reprobes_then_notifies(self):
        client = _client(200)
        observer = HttpReachabilityObserver(
            "https://x/health", interval_seconds=60, debounce_seconds=0.0, client=client
        )
        calls = []
        observer.on_foreground(lambda: calls.append(observer.is_online))

        observer.notify_foreground()
        await asyncio.sleep(0.05)

        assert calls == [True]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_stop_does_not_close_injected_client(self):
        client = _client(200)
        observer = HttpReachabilityObserver("https://x/health", interval_seconds=60, client=client)

        await observer.start()
        await observer.stop()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_stop_cancels_foreground_probe(self):
        release = asyncio.Event()
        requests = []

        async def handler(request):
            requests.append(request)
            if len(requests) > 1:
                await release.wait()
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        observer = HttpReachabilityObserver("https://x/health", interval_seconds=60, client=client)
        resumed = []
        observer.on_foreground(lambda: resumed.append(True))
        await observer.start()

        observer.notify_foreground()
        for _ in range(100):
            if len(requests) == 2:
                break
            await asyncio.sleep(0.01)
        assert len(requests) == 2
        foreground = observer._foreground_task

        await observer.stop()
        release.set()
        await asyncio.sleep(0.01)

        assert foreground.cancelled()
        assert resumed == []
        await client.aclose()

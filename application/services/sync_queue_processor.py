"""
Sync Queue Processor - drains the offline queue against the remote backend.

Part of AMA-720: Offline-first sync queue

State machine:

    IDLE ──(timer / online / startup / foreground / manual)──> DRAINING
    DRAINING ──(queue empty)──> IDLE
    DRAINING ──(remote call failed)──> BACKOFF
    BACKOFF ──(delay elapsed, or connectivity regained)──> IDLE

A drain pass processes the whole backlog strictly in creation order and
stops at the first failure, so a later mutation never reaches the backend
before one it may depend on (a set logged inside a session that has not
been created remotely yet). Only one pass runs at a time; a trigger that
arrives while a pass is active is observed and dropped, since the active
pass re-reads the store and will pick up anything enqueued meanwhile.

The processor never raises out of a pass. Failures are surfaced through the
on_error callback and the `last_error` field of the published SyncStatus.
"""

import asyncio
import inspect
import logging
import time
from datetime import timedelta
from typing import Any, Awaitable, Callable, Coroutine, List, Optional, Set, Union

from application.ports import NetworkObserver, QueueStore, RemoteApiClient
from application.services.backoff import BackoffPolicy
from domain.errors import (
    AbandonedError,
    SessionMismatchError,
    SyncQueueError,
    TransientRemoteError,
)
from domain.models import ProcessorState, QueueItem, SyncStatus, utc_now

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 5000
DEFAULT_IDLE_INTERVAL_MS = 30000
DEFAULT_IDLE_AFTER_EMPTY_RUNS = 3
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BATCH_SIZE = 5

ErrorCallback = Callable[[QueueItem, BaseException], Union[None, Awaitable[None]]]
SuccessCallback = Callable[[QueueItem], Union[None, Awaitable[None]]]
StatusListener = Callable[[SyncStatus], None]


class TriggerReason:
    """Why a drain pass was requested (used for logging)."""

    TIMER = "timer"
    ONLINE = "online"
    STARTUP = "startup"
    FOREGROUND = "foreground"
    MANUAL = "manual"


class SyncQueueProcessor:
    """
    Network-aware processing loop for the offline sync queue.

    Dependencies are injected via constructor for testability: pass a fake
    store, observer and client to exercise the state machine in isolation.

    Usage:
        >>> processor = SyncQueueProcessor(store, observer, client, on_error=report)
        >>> await processor.start()      # timer + reachability subscription
        >>> await processor.trigger()    # manual drain
        >>> await processor.stop()       # waits for an in-flight pass

    Args:
        store: Durable queue store (must already be initialized)
        observer: Reachability signal
        client: Executes one mutation remotely
        interval_ms: Timer period while there is work
        idle_interval_ms: Timer period after repeated empty passes
        idle_after_empty_runs: Empty passes before switching to idle_interval_ms
        enabled: Master on/off switch
        max_attempts: Retry ceiling; an item failing this many times is abandoned
        backoff: Delay policy applied after a failed attempt
        batch_size: Peek lookahead per store read
        on_error: Called with (item, error) for every failed attempt,
            abandoned item and session mismatch
        on_success: Called with the item after the backend acknowledged it
        require_session: If True, passes are no-ops until bind_session()
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        store: QueueStore,
        observer: NetworkObserver,
        client: RemoteApiClient,
        *,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        idle_interval_ms: int = DEFAULT_IDLE_INTERVAL_MS,
        idle_after_empty_runs: int = DEFAULT_IDLE_AFTER_EMPTY_RUNS,
        enabled: bool = True,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: Optional[BackoffPolicy] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_error: Optional[ErrorCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        require_session: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_ms <= 0 or idle_interval_ms <= 0:
            raise ValueError("interval_ms and idle_interval_ms must be positive")
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self._store = store
        self._observer = observer
        self._client = client
        self.interval_ms = interval_ms
        self.idle_interval_ms = idle_interval_ms
        self.idle_after_empty_runs = idle_after_empty_runs
        self.enabled = enabled
        self.max_attempts = max_attempts
        self.backoff = backoff or BackoffPolicy()
        self.batch_size = batch_size
        self.on_error = on_error
        self.on_success = on_success
        self._require_session = require_session
        self._clock = clock

        self._session_active = not require_session
        self._session_user_id: Optional[str] = None

        self._status = SyncStatus(is_online=observer.is_online)
        self._listeners: List[StatusListener] = []

        self._draining = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._backoff_deadline: Optional[float] = None
        self._backoff_handle: Optional[asyncio.TimerHandle] = None
        self._consecutive_empty_runs = 0
        self._pass_error: Optional[BaseException] = None

        self._running = False
        self._stopping = False
        self._timer_task: Optional[asyncio.Task] = None
        self._wake = asyncio.Event()
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribers: List[Callable[[], None]] = []

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def state(self) -> ProcessorState:
        return self._status.state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_draining(self) -> bool:
        return self._draining

    @property
    def session_user_id(self) -> Optional[str]:
        return self._session_user_id

    @property
    def consecutive_empty_runs(self) -> int:
        return self._consecutive_empty_runs

    @property
    def current_interval_seconds(self) -> float:
        """Timer period, switching to the idle period after repeated empty passes."""
        if self._consecutive_empty_runs >= self.idle_after_empty_runs:
            return self.idle_interval_ms / 1000
        return self.interval_ms / 1000

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the timer, subscribe to the observer, and drain if already online."""
        if self._running:
            logger.warning("Sync queue processor is already running")
            return

        self._running = True
        self._stopping = False
        self._unsubscribers = [
            self._observer.subscribe(self._on_reachability_change),
            self._observer.on_foreground(self._on_foreground),
        ]
        self._timer_task = asyncio.get_running_loop().create_task(self._run_timer())
        await self.refresh_status()
        logger.info(
            f"Sync queue processor started (interval={self.interval_ms}ms, "
            f"max_attempts={self.max_attempts}, online={self._observer.is_online})"
        )

        if self._observer.is_online:
            self._spawn(self.trigger(TriggerReason.STARTUP))

    async def stop(self) -> None:
        """
        Stop the timer and unsubscribe.

        An in-flight remote call is allowed to finish or fail naturally; the
        pass then ends without attempting further items.
        """
        if not self._running:
            return

        self._stopping = True
        self._running = False

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

        if self._timer_task is not None:
            self._timer_task.cancel()
            try:
                await self._timer_task
            except asyncio.CancelledError:
                pass
            self._timer_task = None

        self._cancel_backoff_timer()

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._idle.wait()

        self._stopping = False
        logger.info("Sync queue processor stopped")

    async def wait_until_idle(self) -> None:
        """Wait for an in-flight drain pass (if any) to finish."""
        await self._idle.wait()

    # =========================================================================
    # Session binding
    # =========================================================================

    def bind_session(self, user_id: Optional[str]) -> None:
        """Attach the identity whose mutations this processor may replay."""
        self._session_user_id = user_id
        self._session_active = True
        logger.info("Sync session bound")

    def clear_session(self) -> None:
        """Detach the identity; with require_session, passes become no-ops."""
        self._session_user_id = None
        self._session_active = not self._require_session
        logger.info("Sync session cleared")

    # =========================================================================
    # Status
    # =========================================================================

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """
        Register a status listener.

        The listener is called with the current status immediately and then
        on every state transition and timer tick.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)
        self._call_listener(listener, self._status)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def refresh_status(self) -> SyncStatus:
        """Re-count the store and publish."""
        queue_length = await self._store.count()
        self._publish(queue_length=queue_length, is_online=self._observer.is_online)
        return self._status

    def note_enqueued(self) -> None:
        """Restore the active timer cadence after new work arrives."""
        self._consecutive_empty_runs = 0
        self._wake.set()

    # =========================================================================
    # Drain
    # =========================================================================

    async def trigger(self, reason: str = TriggerReason.MANUAL) -> bool:
        """
        Request a drain pass.

        Args:
            reason: What requested the pass (timer, online, startup, ...)

        Returns:
            True if a pass ran, False if the trigger was a no-op
            (disabled, offline, in backoff, or a pass already active)
        """
        # Everything up to setting _draining runs without suspending, so two
        # triggers can never both get past this point.
        if self._draining:
            logger.debug(f"Drain trigger '{reason}' ignored: pass already active")
            return False
        if self._stopping or not self.enabled or not self._session_active:
            logger.debug(f"Drain trigger '{reason}' ignored: processor inactive")
            return False
        if not self._observer.is_online:
            logger.debug(f"Drain trigger '{reason}' ignored: offline")
            self._publish(is_online=False)
            return False
        if self.state == ProcessorState.BACKOFF:
            if self._backoff_deadline is not None and self._clock() < self._backoff_deadline:
                logger.debug(f"Drain trigger '{reason}' ignored: backing off")
                return False
            self._end_backoff()

        self._draining = True
        self._idle.clear()
        try:
            logger.debug(f"Drain pass started ({reason})")
            await self._drain()
        except Exception as e:
            # A store failure mid-pass; the items stay put for a later pass.
            logger.error(f"Drain pass failed unexpectedly: {e}", exc_info=True)
            self._publish(last_error=e)
            self._enter_backoff(1)
        finally:
            self._draining = False
            self._idle.set()
        return True

    async def _drain(self) -> None:
        self._pass_error = None
        self._publish(state=ProcessorState.DRAINING, is_online=True)
        processed = 0
        first_read = True

        while True:
            batch = await self._store.peek_batch(self.batch_size)

            if first_read:
                first_read = False
                if batch:
                    self._consecutive_empty_runs = 0
                else:
                    self._consecutive_empty_runs += 1

            if not batch:
                self._finish_pass(processed)
                return

            for item in batch:
                if not self._can_continue():
                    await self._interrupt_pass(processed)
                    return

                if not item.belongs_to(self._session_user_id):
                    await self._discard_foreign(item)
                    continue

                if item.is_exhausted(self.max_attempts):
                    await self._abandon(item, cause=None)
                    continue

                try:
                    await self._client.execute(item.operation_type, item.payload)
                except Exception as e:
                    await self._handle_failure(item, e)
                    return

                await self._store.remove(item.id)
                processed += 1
                logger.info(f"Synced {item.operation_type} item {item.id}")
                self._publish(
                    queue_length=max(self._status.queue_length - 1, 0),
                    last_synced_at=utc_now(),
                )
                await self._invoke(self.on_success, item)

    def _can_continue(self) -> bool:
        return (
            not self._stopping
            and self.enabled
            and self._session_active
            and self._observer.is_online
        )

    def _finish_pass(self, processed: int) -> None:
        if processed:
            logger.info(f"Drain pass complete: {processed} item(s) synced")
        self._publish(
            state=ProcessorState.IDLE,
            queue_length=0,
            # Abandonments and discards from this pass stay visible.
            last_error=self._pass_error,
            last_synced_at=utc_now(),
        )

    async def _interrupt_pass(self, processed: int) -> None:
        logger.info(f"Drain pass interrupted after {processed} item(s)")
        queue_length = await self._store.count()
        self._publish(state=ProcessorState.IDLE, queue_length=queue_length)

    async def _handle_failure(self, item: QueueItem, error: Exception) -> None:
        """Record the attempt, surface the error, and back off."""
        if not isinstance(error, SyncQueueError):
            error = TransientRemoteError(f"{type(error).__name__}: {error}")

        failed = item.with_failure(str(error))

        if failed.is_exhausted(self.max_attempts):
            await self._abandon(failed, cause=error)
        else:
            await self._store.update(
                item.id,
                attempt_count=failed.attempt_count,
                last_error=failed.last_error,
                last_attempt_at=failed.last_attempt_at,
            )
            logger.warning(
                f"Sync failed for {item.operation_type} item {item.id} "
                f"(attempt {failed.attempt_count}/{self.max_attempts}): {error}"
            )
            self._publish(last_error=error)
            await self._invoke(self.on_error, failed, error)

        self._enter_backoff(failed.attempt_count)

    async def _abandon(self, item: QueueItem, cause: Optional[BaseException]) -> None:
        """Discard a poison item and report it loudly."""
        await self._store.remove(item.id)
        abandoned = AbandonedError(item, cause)
        self._pass_error = abandoned
        logger.error(
            f"{abandoned} (created {item.created_at.isoformat()}, "
            f"last error: {item.last_error})"
        )
        self._publish(
            queue_length=max(self._status.queue_length - 1, 0),
            last_error=abandoned,
        )
        await self._invoke(self.on_error, item, abandoned)

    async def _discard_foreign(self, item: QueueItem) -> None:
        await self._store.remove(item.id)
        mismatch = SessionMismatchError(item, self._session_user_id)
        logger.warning(str(mismatch))
        self._pass_error = mismatch
        self._publish(
            queue_length=max(self._status.queue_length - 1, 0),
            last_error=mismatch,
        )
        await self._invoke(self.on_error, item, mismatch)

    # =========================================================================
    # Backoff
    # =========================================================================

    def _enter_backoff(self, attempt: int) -> None:
        delay = self.backoff.delay(attempt)
        self._backoff_deadline = self._clock() + delay
        self._cancel_backoff_timer()
        self._backoff_handle = asyncio.get_running_loop().call_later(delay, self._end_backoff)
        self._publish(
            state=ProcessorState.BACKOFF,
            backoff_until=utc_now() + timedelta(seconds=delay),
        )
        logger.info(f"Backing off for {delay:.1f}s")

    def _end_backoff(self) -> None:
        self._cancel_backoff_timer()
        self._backoff_deadline = None
        if self.state == ProcessorState.BACKOFF:
            self._publish(state=ProcessorState.IDLE, backoff_until=None)

    def _cancel_backoff_timer(self) -> None:
        if self._backoff_handle is not None:
            self._backoff_handle.cancel()
            self._backoff_handle = None

    # =========================================================================
    # Trigger sources
    # =========================================================================

    async def _run_timer(self) -> None:
        while True:
            self._wake.clear()
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.current_interval_seconds)
                # Woken early: restart the wait with the current cadence.
                continue
            except asyncio.TimeoutError:
                pass
            self._publish(is_online=self._observer.is_online)
            # stop() cancels this task; the pass runs outside it.
            self._spawn(self.trigger(TriggerReason.TIMER))

    def _on_reachability_change(self, online: bool) -> None:
        self._publish(is_online=online)
        if not online:
            logger.info("Connectivity lost; sync paused")
            return
        logger.info("Connectivity regained; draining queue")
        # Failures before the transition were most likely connectivity failures.
        self._end_backoff()
        self._spawn(self.trigger(TriggerReason.ONLINE))

    def _on_foreground(self) -> None:
        if self._observer.is_online:
            self._spawn(self.trigger(TriggerReason.FOREGROUND))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        if not self._running:
            # Not started: nobody would await the task.
            coro.close()
            return
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # =========================================================================
    # Notification helpers
    # =========================================================================

    def _publish(self, **changes: Any) -> None:
        self._status = self._status.evolve(**changes)
        for listener in list(self._listeners):
            self._call_listener(listener, self._status)

    @staticmethod
    def _call_listener(listener: StatusListener, status: SyncStatus) -> None:
        try:
            listener(status)
        except Exception as e:
            logger.error(f"Status listener raised: {e}", exc_info=True)

    @staticmethod
    async def _invoke(callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Sync callback raised: {e}", exc_info=True)

"""
Supabase Remote API Client.

Part of AMA-723: Supabase remote client for the sync queue

Applies one queued mutation to the managed backend: a PostgREST upsert,
update or delete, or an Edge Function invocation. Calls are forwarded with
the signed-in user's JWT so row-level security applies exactly as it would
for an online write.

Upserts are keyed by record id, so replaying an item whose acknowledgement
was lost does not duplicate its effect.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from domain.errors import ReachabilityUncertain, TransientRemoteError
from infrastructure.remote.operations import (
    CREATE,
    DELETE,
    INVOKE,
    PATCH,
    UPDATE,
    UPSERT,
    OperationRegistry,
    RemoteOperation,
    UnknownOperationError,
    default_registry,
)

logger = logging.getLogger(__name__)

# PostgREST: no rows matched. A delete of something already gone is a success.
NOT_FOUND_CODE = "PGRST204"

DEFAULT_REQUEST_RETRIES = 2
DEFAULT_MIN_WAIT_SECONDS = 0.5
DEFAULT_MAX_WAIT_SECONDS = 5.0


class RateLimitedError(TransientRemoteError):
    """The backend answered 429; retried briefly inside the call."""


def _is_rate_limited(error: BaseException) -> bool:
    error_str = str(error).lower()
    if "429" in error_str:
        return True
    return "rate" in error_str and "limit" in error_str


class SupabaseRemoteClient:
    """
    RemoteApiClient implementation using the Supabase Python client.

    The Supabase client is synchronous; each call runs in a worker thread so
    the event loop stays responsive. Request timeouts are configured on the
    Supabase client itself (see sync_service.wiring).
    """

    def __init__(
        self,
        client: Client,
        *,
        registry: Optional[OperationRegistry] = None,
        request_retries: int = DEFAULT_REQUEST_RETRIES,
        min_wait_seconds: float = DEFAULT_MIN_WAIT_SECONDS,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
    ):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected)
            registry: Operation tag lookup (defaults to default_registry())
            request_retries: Extra attempts for rate-limited calls
            min_wait_seconds: First rate-limit wait
            max_wait_seconds: Longest rate-limit wait
        """
        if request_retries < 0:
            raise ValueError(f"request_retries must be >= 0, got {request_retries}")
        self._client = client
        self.registry = registry or default_registry()
        self.request_retries = request_retries
        self.min_wait_seconds = min_wait_seconds
        self.max_wait_seconds = max_wait_seconds
        self._access_token: Optional[str] = None

    @property
    def has_session(self) -> bool:
        return self._access_token is not None

    def set_access_token(self, access_token: Optional[str]) -> None:
        """Forward the user's JWT on every call, or fall back to the project key."""
        self._access_token = access_token
        token = access_token or self._client.supabase_key
        self._client.postgrest.auth(token)
        self._client.functions.set_auth(token)

    async def execute(self, operation_type: str, payload: Dict[str, Any]) -> None:
        try:
            operation = self.registry.resolve(operation_type)
        except UnknownOperationError as e:
            raise TransientRemoteError(str(e)) from e

        if not operation.wants_sync(payload):
            logger.info(f"Skipping remote sync for {operation_type}: not ready to sync")
            return

        body = operation.sanitize(payload)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.request_retries + 1),
            wait=wait_exponential(
                multiplier=self.min_wait_seconds,
                min=self.min_wait_seconds,
                max=self.max_wait_seconds,
            ),
            retry=retry_if_exception_type(RateLimitedError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await asyncio.to_thread(self._apply, operation, body)

    def _apply(self, operation: RemoteOperation, body: Dict[str, Any]) -> None:
        """Run one call and translate client errors into the queue's taxonomy."""
        try:
            self._dispatch(operation, body)
        except APIError as e:
            if operation.action == DELETE and e.code == NOT_FOUND_CODE:
                logger.debug(f"Delete on {operation.target} found nothing; treating as synced")
                return
            if _is_rate_limited(e):
                raise RateLimitedError(str(e), status_code=429) from e
            raise TransientRemoteError(
                f"{operation.target} {operation.action} failed: {e.message or e}"
            ) from e
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise ReachabilityUncertain(f"Backend unreachable: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimitedError(str(e), status_code=status) from e
            raise TransientRemoteError(f"HTTP {status}: {e}", status_code=status) from e
        except TransientRemoteError:
            raise
        except Exception as e:
            # Edge Function errors carry the HTTP status on the exception.
            status = getattr(e, "status", None)
            if status == 429 or _is_rate_limited(e):
                raise RateLimitedError(str(e), status_code=429) from e
            raise TransientRemoteError(
                f"{type(e).__name__}: {e}",
                status_code=status if isinstance(status, int) else None,
            ) from e

    def _dispatch(self, operation: RemoteOperation, body: Dict[str, Any]) -> None:
        if operation.action in (UPSERT, CREATE, UPDATE):
            self._client.table(operation.target) \
                .upsert(body, on_conflict=operation.on_conflict) \
                .execute()
        elif operation.action == PATCH:
            record_id = self._require_id(operation, body)
            fields = {k: v for k, v in body.items() if k != "id"}
            self._client.table(operation.target) \
                .update(fields) \
                .eq("id", record_id) \
                .execute()
        elif operation.action == DELETE:
            record_id = self._require_id(operation, body)
            self._client.table(operation.target) \
                .delete() \
                .eq("id", record_id) \
                .execute()
        elif operation.action == INVOKE:
            self._client.functions.invoke(
                operation.target,
                invoke_options={"body": body},
            )

    @staticmethod
    def _require_id(operation: RemoteOperation, body: Dict[str, Any]) -> Any:
        record_id = body.get("id")
        if record_id is None:
            raise TransientRemoteError(
                f"{operation.target} {operation.action} payload is missing 'id'"
            )
        return record_id

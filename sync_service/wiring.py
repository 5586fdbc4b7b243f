"""
Builds the sync manager and its collaborators from Settings.

Part of AMA-720: Offline-first sync queue

Each builder takes Settings and returns the Protocol type, so the API and
CLI never import a concrete adapter directly and tests can substitute any
piece.
"""
import logging
from typing import Optional

import sentry_sdk
from supabase import Client, ClientOptions, create_client

from application.ports import NetworkObserver, QueueStore, RecordStorage, RemoteApiClient
from application.services import BackoffPolicy, OfflineSyncManager
from application.services.sync_queue_processor import ErrorCallback
from domain.errors import AbandonedError
from domain.models import QueueItem
from infrastructure.network import HttpReachabilityObserver, ManualNetworkObserver
from infrastructure.remote import SupabaseRemoteClient
from infrastructure.storage import JsonFileRecordStorage, RecordQueueStore, SqliteRecordStorage
from sync_service.settings import Settings

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Settings are missing something a component needs."""


def build_record_storage(settings: Settings) -> RecordStorage:
    if settings.sync_store_backend == "json":
        return JsonFileRecordStorage(
            settings.sync_store_path,
            max_bytes=settings.sync_store_max_bytes,
        )
    return SqliteRecordStorage(settings.sync_store_path)


def build_queue_store(settings: Settings) -> QueueStore:
    return RecordQueueStore(build_record_storage(settings))


def build_network_observer(settings: Settings) -> NetworkObserver:
    debounce_seconds = settings.network_debounce_ms / 1000
    if settings.network_observer == "http":
        probe_url = settings.resolved_probe_url
        if not probe_url:
            raise ConfigurationError(
                "NETWORK_OBSERVER=http requires NETWORK_PROBE_URL or SUPABASE_URL"
            )
        headers = {"apikey": settings.supabase_key} if settings.supabase_key else None
        return HttpReachabilityObserver(
            probe_url,
            interval_seconds=settings.network_probe_interval_seconds,
            timeout_seconds=min(settings.request_timeout_seconds, 10.0),
            headers=headers,
            debounce_seconds=debounce_seconds,
        )
    return ManualNetworkObserver(
        initial=settings.network_initially_online,
        debounce_seconds=debounce_seconds,
    )


def build_supabase_client(settings: Settings) -> Client:
    """
    Create the Supabase client used for replay.

    Raises:
        ConfigurationError: If Supabase credentials are not configured
    """
    if not settings.supabase_url or not settings.supabase_key:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_ANON_KEY are required to replay queued mutations"
        )
    options = ClientOptions(
        postgrest_client_timeout=settings.request_timeout_seconds,
        function_client_timeout=int(settings.request_timeout_seconds),
    )
    return create_client(settings.supabase_url, settings.supabase_key, options=options)


def build_remote_client(settings: Settings) -> RemoteApiClient:
    return SupabaseRemoteClient(
        build_supabase_client(settings),
        request_retries=settings.request_retries,
    )


def report_sync_error(item: QueueItem, error: BaseException) -> None:
    """
    Default on_error callback.

    Transient failures are already logged by the processor; abandoned items
    are real data loss and are also sent to Sentry.
    """
    if isinstance(error, AbandonedError):
        sentry_sdk.capture_message(
            f"Sync queue abandoned {item.operation_type} item {item.id}: {error}",
            level="error",
        )


def processor_options(
    settings: Settings,
    on_error: Optional[ErrorCallback] = None,
) -> dict:
    return {
        "interval_ms": settings.sync_interval_ms,
        "idle_interval_ms": settings.sync_idle_interval_ms,
        "idle_after_empty_runs": settings.sync_idle_after_empty_runs,
        "enabled": settings.sync_enabled,
        "max_attempts": settings.sync_max_attempts,
        "backoff": BackoffPolicy.from_millis(
            settings.sync_backoff_strategy,
            settings.sync_backoff_base_ms,
            settings.sync_backoff_max_ms,
        ),
        "batch_size": settings.sync_batch_size,
        "on_error": on_error or report_sync_error,
    }


def build_sync_manager(
    settings: Settings,
    *,
    store: Optional[QueueStore] = None,
    observer: Optional[NetworkObserver] = None,
    client: Optional[RemoteApiClient] = None,
    on_error: Optional[ErrorCallback] = None,
) -> OfflineSyncManager:
    """
    Assemble an OfflineSyncManager.

    Any collaborator passed explicitly is used as-is; the rest are built
    from settings.
    """
    return OfflineSyncManager(
        store or build_queue_store(settings),
        observer or build_network_observer(settings),
        client or build_remote_client(settings),
        processor_options=processor_options(settings, on_error),
    )

"""
Infrastructure Layer for the offline sync queue.

Part of AMA-720: Offline-first sync queue

This package contains concrete implementations of the application ports:
- storage/: Local queue persistence (SQLite, JSON file)
- network/: Reachability observers (manual, HTTP probe)
- remote/: Supabase remote API client
"""

from infrastructure.network import (
    HttpReachabilityObserver,
    ManualNetworkObserver,
    ReachabilityObserver,
)
from infrastructure.remote import SupabaseRemoteClient, default_registry
from infrastructure.storage import (
    JsonFileRecordStorage,
    RecordQueueStore,
    SqliteRecordStorage,
)

__all__ = [
    "RecordQueueStore",
    "SqliteRecordStorage",
    "JsonFileRecordStorage",
    "ReachabilityObserver",
    "ManualNetworkObserver",
    "HttpReachabilityObserver",
    "SupabaseRemoteClient",
    "default_registry",
]

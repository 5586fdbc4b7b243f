"""
Remote backend access for the sync queue.

- SupabaseRemoteClient: applies queued mutations via PostgREST / Edge Functions
- OperationRegistry: operation tag -> remote call
"""

from infrastructure.remote.operations import (
    OperationRegistry,
    RemoteOperation,
    UnknownOperationError,
    default_registry,
)
from infrastructure.remote.supabase_client import RateLimitedError, SupabaseRemoteClient

__all__ = [
    "SupabaseRemoteClient",
    "RateLimitedError",
    "OperationRegistry",
    "RemoteOperation",
    "UnknownOperationError",
    "default_registry",
]

"""
Interfaces (Ports) for the offline sync queue.

Part of AMA-720: Offline-first sync queue
Updated in AMA-721: Unify web/mobile queue storage behind one capability

This package defines abstract interfaces that decouple the sync processor
from infrastructure (local storage, connectivity, the remote backend).
Implementations are provided in infrastructure/; in-memory fakes for tests
live in tests/fakes/.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the processor needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import QueueStore, NetworkObserver, RemoteApiClient

    class SyncQueueProcessor:
        def __init__(self, store: QueueStore, observer: NetworkObserver, ...):
            ...
"""

# Queue persistence
from application.ports.queue_store import QueueStore
from application.ports.record_storage import RecordStorage

# Connectivity
from application.ports.network_observer import (
    NetworkObserver,
    ReachabilityListener,
    ForegroundListener,
    Unsubscribe,
)

# Remote backend
from application.ports.remote_client import RemoteApiClient

__all__ = [
    # Persistence
    "QueueStore",
    "RecordStorage",
    # Connectivity
    "NetworkObserver",
    "ReachabilityListener",
    "ForegroundListener",
    "Unsubscribe",
    # Remote
    "RemoteApiClient",
]

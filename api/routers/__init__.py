"""
Router package for the sync service.

Part of AMA-723: Local HTTP surface for the UI adapter

- health: Liveness endpoint
- sync_queue: Enqueue, status, drain, network state and session boundary
"""

from api.routers.health import router as health_router
from api.routers.sync_queue import router as sync_queue_router

__all__ = [
    "health_router",
    "sync_queue_router",
]

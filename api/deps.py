"""
FastAPI Dependency Providers for the sync service.

Part of AMA-723: Local HTTP surface for the UI adapter

The sync manager is created once in the app lifespan and kept on
``app.state``; routers reach it through ``get_sync_manager`` so tests can
swap it with ``app.dependency_overrides``.

Usage in routers:
    from api.deps import get_sync_manager

    @router.get("/sync/status")
    def read_status(manager: OfflineSyncManager = Depends(get_sync_manager)):
        return manager.status.to_dict()
"""

from fastapi import HTTPException, Request

from application.services import OfflineSyncManager
from sync_service.settings import Settings, get_settings as _get_settings


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from sync_service.settings.
    """
    return _get_settings()


# =============================================================================
# Sync Manager Provider
# =============================================================================


def get_sync_manager(request: Request) -> OfflineSyncManager:
    """
    Get the running sync manager for this process.

    Raises:
        HTTPException: 503 if the app lifespan has not started the manager
    """
    manager = getattr(request.app.state, "sync_manager", None)
    if manager is None or not manager.is_started:
        raise HTTPException(status_code=503, detail="Sync manager is not running")
    return manager


__all__ = [
    "get_settings",
    "get_sync_manager",
]

"""
Health check router.

Part of AMA-723: Local HTTP surface for the UI adapter
"""

from fastapi import APIRouter, Request

router = APIRouter(
    tags=["Health"],
)


@router.get("/health")
def health(request: Request):
    """
    Simple liveness endpoint for the sync service.

    Returns:
        dict: Status indicator plus whether the sync manager is running
    """
    manager = getattr(request.app.state, "sync_manager", None)
    return {
        "status": "ok",
        "sync_running": bool(manager is not None and manager.is_started),
    }

"""
Sync queue router.

Part of AMA-723: Local HTTP surface for the UI adapter

This router contains endpoints for:
- POST /sync/queue - Record a mutation for replay
- GET /sync/queue - List pending mutations, oldest first
- GET /sync/status - Current processor status
- POST /sync/drain - Run a manual drain pass
- POST /sync/network - Forward a browser online/offline event
- POST /sync/foreground - App returned to the foreground
- POST /sync/session - Begin a session (user id + access token)
- DELETE /sync/session - End the session and purge the queue
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_sync_manager
from api.schemas.sync_queue import (
    EnqueueRequest,
    EnqueueResponse,
    NetworkStateRequest,
    QueueListResponse,
    SessionRequest,
)
from application.services import OfflineSyncManager
from domain.errors import StoreNotInitializedError, StoreWriteError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/sync",
    tags=["Sync Queue"],
)


# =============================================================================
# Queue
# =============================================================================


@router.post("/queue", response_model=EnqueueResponse, status_code=201)
async def enqueue_mutation(
    request: EnqueueRequest,
    manager: OfflineSyncManager = Depends(get_sync_manager),
):
    """
    Persist a mutation locally. Returns once it is stored, not once it is synced.
    """
    try:
        item = await manager.enqueue(request.operation_type, request.payload)
    except StoreWriteError as e:
        logger.error(f"Failed to persist {request.operation_type}: {e}")
        raise HTTPException(status_code=507, detail=str(e))
    except StoreNotInitializedError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return EnqueueResponse(item=item, status=manager.status.to_dict())


@router.get("/queue", response_model=QueueListResponse)
async def list_pending(
    limit: int = Query(50, ge=1, le=500),
    manager: OfflineSyncManager = Depends(get_sync_manager),
):
    """List pending mutations in replay order."""
    items = await manager.pending(limit)
    return QueueListResponse(items=items, count=await manager.store.count())


# =============================================================================
# Status / drain
# =============================================================================


@router.get("/status")
def read_status(manager: OfflineSyncManager = Depends(get_sync_manager)):
    return manager.status.to_dict()


@router.post("/drain")
async def drain(manager: OfflineSyncManager = Depends(get_sync_manager)):
    """
    Run one manual drain pass.

    A no-op when offline, in backoff, without a session, or while another
    pass is already running; the returned status shows which.
    """
    status = await manager.drain_now()
    return status.to_dict()


# =============================================================================
# Connectivity / lifecycle events
# =============================================================================


@router.post("/network")
async def report_network_state(
    request: NetworkStateRequest,
    manager: OfflineSyncManager = Depends(get_sync_manager),
):
    """
    Feed a browser online/offline event into the network observer.

    Runs on the event loop: observer listeners schedule drain tasks.
    """
    report = getattr(manager.observer, "report", None)
    if report is None:
        raise HTTPException(
            status_code=409,
            detail="Network observer does not accept reachability reports",
        )
    report(request.online)
    return {"online": manager.observer.is_online, "pending": request.online != manager.observer.is_online}


@router.post("/foreground")
async def app_foregrounded(manager: OfflineSyncManager = Depends(get_sync_manager)):
    notify = getattr(manager.observer, "notify_foreground", None)
    if notify is None:
        raise HTTPException(
            status_code=409,
            detail="Network observer does not accept foreground events",
        )
    notify()
    return {"accepted": True}


# =============================================================================
# Session boundary
# =============================================================================


@router.post("/session")
async def begin_session(
    request: SessionRequest,
    manager: OfflineSyncManager = Depends(get_sync_manager),
):
    await manager.begin_session(request.user_id, request.access_token)
    return {"user_id": manager.user_id, "status": manager.status.to_dict()}


@router.delete("/session")
async def end_session(manager: OfflineSyncManager = Depends(get_sync_manager)):
    """Logout hook: purge every queued mutation and drop credentials."""
    await manager.end_session()
    return {"user_id": None, "status": manager.status.to_dict()}

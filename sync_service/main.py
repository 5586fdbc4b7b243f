"""
Application factory for FastAPI.

Part of AMA-720: Offline-first sync queue

The sync service is a local companion process: the UI adapter (web or
mobile shell) talks to it over HTTP to enqueue mutations, report
connectivity, observe status and end sessions. The sync manager is started
in the app lifespan and stopped on shutdown, so teardown lets any in-flight
remote call finish before the store is closed.

Usage:
    from sync_service.main import create_app
    from sync_service.settings import Settings

    # Default app (uses get_settings())
    app = create_app()

    # Test app with custom settings and an injected manager
    test_app = create_app(settings=Settings(environment="test", _env_file=None), manager=manager)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI

from application.services import OfflineSyncManager
from sync_service.settings import Settings, get_settings
from sync_service.wiring import build_sync_manager

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    manager: Optional[OfflineSyncManager] = None,
) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.
        manager: Optional pre-built sync manager. If not provided, one is
                 built from settings when the app starts.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    _init_sentry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sync_manager = manager or build_sync_manager(settings)
        app.state.sync_manager = sync_manager
        await sync_manager.start()
        _log_sync_config(settings)
        try:
            yield
        finally:
            await sync_manager.stop()

    app = FastAPI(
        title="Offline Sync Service",
        description="Offline-first mutation queue with replay to Supabase",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    _include_routers(app)

    return app


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
        )
        logger.info("Sentry initialized for sync service")


def _include_routers(app: FastAPI) -> None:
    """Include all API routers in the application."""
    from api.routers import health_router, sync_queue_router

    # Health router (no prefix - /health at root)
    app.include_router(health_router)
    # Sync queue (enqueue, status, session boundary)
    app.include_router(sync_queue_router)


def _log_sync_config(settings: Settings) -> None:
    """Log the sync configuration at startup."""
    if not settings.sync_enabled:
        logger.warning("=== SYNC_ENABLED is false: mutations will queue but not replay ===")
    logger.info(
        f"Sync store: {settings.sync_store_backend} at {settings.sync_store_path}; "
        f"observer: {settings.network_observer}; "
        f"interval: {settings.sync_interval_ms}ms; max attempts: {settings.sync_max_attempts}"
    )

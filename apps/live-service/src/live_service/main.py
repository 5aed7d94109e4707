"""
Live Service - FastAPI Application

Receives MediaMTX hook events and runs one supervised ffmpeg HLS ladder
per live broadcast.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from live_service import __version__
from live_service.api import hooks
from live_service.config.settings import LiveSettings
from live_service.ingest.bridge import IngestEventBridge
from live_service.ingest.interface import IngestController
from live_service.ingest.mediamtx import MediaMtxClient
from live_service.orchestrator.live_manager import LiveManager
from live_service.store.interface import MetadataStore
from live_service.store.memory import InMemoryMetadataStore

logger = logging.getLogger(__name__)


def build_store(settings: LiveSettings) -> MetadataStore:
    """Default store: in-memory, seeded from LIVE_CHANNELS_FILE if set."""
    if settings.channels_file is not None:
        return InMemoryMetadataStore.from_yaml(settings.channels_file)
    logger.warning("LIVE_CHANNELS_FILE not set, no stream key will be accepted")
    return InMemoryMetadataStore()


def create_app(
    settings: Optional[LiveSettings] = None,
    store: Optional[MetadataStore] = None,
    ingest: Optional[IngestController] = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Configuration (defaults to LIVE_* environment variables)
        store: Metadata store (defaults to build_store(settings))
        ingest: Ingest controller (defaults to the MediaMTX API client)
    """
    settings = settings or LiveSettings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Wire store -> manager -> bridge; end all sessions on exit."""
        logger.info("Live service starting...")
        settings.hls_root.mkdir(parents=True, exist_ok=True)

        owned_client: Optional[MediaMtxClient] = None
        controller = ingest
        if controller is None:
            owned_client = MediaMtxClient(settings.mediamtx_api_url)
            controller = owned_client

        manager = LiveManager(
            settings, store if store is not None else build_store(settings), controller
        )
        bridge = IngestEventBridge(manager)
        app.state.settings = settings
        app.state.manager = manager
        app.state.bridge = bridge

        try:
            yield
        finally:
            logger.info("Live service shutting down...")
            await bridge.drain(timeout=settings.shutdown_timeout_s)
            await manager.shutdown()
            if owned_client is not None:
                await owned_client.aclose()
            app.state.bridge = None

    app = FastAPI(
        title="Live Service API",
        description="Receives MediaMTX hook events and runs live HLS transcoding sessions",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(hooks.router, prefix="/v1/mediamtx/events", tags=["hooks"])

    @app.get("/health")
    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint."""
        manager: Optional[LiveManager] = getattr(request.app.state, "manager", None)
        active = len(await manager.active_sessions()) if manager is not None else 0
        return JSONResponse(
            {"status": "ok", "service": "live-service", "active_sessions": active}
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()

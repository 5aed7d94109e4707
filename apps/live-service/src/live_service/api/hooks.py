"""
Hook event receiver API endpoints.

Receives POST requests from the MediaMTX hook script when a publisher
starts (ready) or stops (not-ready) pushing a stream. Requests are
answered as soon as the event is scheduled; session handling runs in its
own task on the IngestEventBridge.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from live_service.ingest.bridge import IngestEventBridge
from live_service.models.events import NotReadyEvent, ReadyEvent

router = APIRouter()
logger = logging.getLogger(__name__)


def get_bridge(request: Request) -> IngestEventBridge:
    """Bridge wired by the application lifespan."""
    bridge = getattr(request.app.state, "bridge", None)
    if bridge is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Live service is not ready",
        )
    return bridge


@router.post("/ready", status_code=status.HTTP_200_OK)
async def handle_ready_event(
    event: ReadyEvent,
    bridge: IngestEventBridge = Depends(get_bridge),
) -> JSONResponse:
    """
    Handle stream ready event from MediaMTX.

    Called when a publisher starts pushing a stream. Validation of the path
    and stream key happens in the orchestrator; rejected publishers are
    kicked through the MediaMTX API.

    Args:
        event: Hook event payload with path, query, sourceType, sourceId

    Returns:
        JSONResponse with the accepted session id
    """
    logger.info(
        "Stream ready event received",
        extra={
            "event_type": "ready",
            "path": event.path,
            "session_id": event.source_id,
            "source_type": event.source_type,
            "correlation_id": event.correlation_id,
            "timestamp": event.timestamp.isoformat(),
        },
    )

    bridge.on_publish(event.source_id, event.path, event.source_type)

    return JSONResponse(
        {
            "status": "accepted",
            "session_id": event.source_id,
            "correlation_id": event.correlation_id,
        }
    )


@router.post("/not-ready", status_code=status.HTTP_200_OK)
async def handle_not_ready_event(
    event: NotReadyEvent,
    bridge: IngestEventBridge = Depends(get_bridge),
) -> JSONResponse:
    """
    Handle stream not-ready event from MediaMTX.

    Called when a publisher stops pushing a stream.

    Args:
        event: Hook event payload with path, query, sourceType, sourceId

    Returns:
        JSONResponse with the session id being ended
    """
    logger.info(
        "Stream not-ready event received",
        extra={
            "event_type": "not-ready",
            "path": event.path,
            "session_id": event.source_id,
            "source_type": event.source_type,
            "correlation_id": event.correlation_id,
            "timestamp": event.timestamp.isoformat(),
        },
    )

    bridge.on_unpublish(event.source_id)

    return JSONResponse(
        {
            "status": "accepted",
            "session_id": event.source_id,
            "correlation_id": event.correlation_id,
        }
    )

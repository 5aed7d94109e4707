"""
Ingest module.

Connects the ingest server (MediaMTX) to the orchestrator.

Components:
- IngestEventBridge: schedules one isolated task per publish/unpublish
- IngestController / SessionEventHandler: the two sides of the contract
- MediaMtxClient: kicks rejected connections through the MediaMTX API
"""

from live_service.ingest.bridge import IngestEventBridge
from live_service.ingest.interface import IngestController, SessionEventHandler
from live_service.ingest.mediamtx import MediaMtxClient

__all__ = [
    "IngestController",
    "IngestEventBridge",
    "MediaMtxClient",
    "SessionEventHandler",
]

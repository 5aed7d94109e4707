"""
Ingest server contract.

The orchestrator receives publish/unpublish events through
IngestEventBridge and talks back to the ingest server only to abort a
connection it refuses.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IngestController(Protocol):
    """Control surface of the ingest server."""

    async def abort_connection(self, session_id: str, source_type: str) -> None:
        """Drop the publisher connection identified by session_id.

        Args:
            session_id: Connection id reported with the publish event
            source_type: Ingest protocol of the connection (rtmp, rtsp, srt, webrtc)
        """
        ...


@runtime_checkable
class SessionEventHandler(Protocol):
    """Receiver of typed ingest events."""

    async def handle_publish(self, session_id: str, path: str, source_type: str) -> object:
        ...

    async def handle_unpublish(self, session_id: str) -> None:
        ...

"""
MediaMTX control API client.

Rejected publishers are kicked through the control API:
    POST /v3/{rtmpconns|rtspsessions|srtconns|webrtcsessions}/kick/{id}
"""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

KICK_ENDPOINTS = {
    "rtmp": "rtmpconns",
    "rtsp": "rtspsessions",
    "srt": "srtconns",
    "webrtc": "webrtcsessions",
}


class MediaMtxClient:
    """IngestController backed by the MediaMTX control API."""

    def __init__(
        self,
        api_url: str,
        *,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._api_url,
            timeout=timeout_s,
            transport=transport,
        )

    def kick_path(self, session_id: str, source_type: str) -> str:
        """API path that kicks a connection.

        Raises:
            ValueError: If the source type has no kick endpoint
        """
        kind = KICK_ENDPOINTS.get(source_type)
        if kind is None:
            raise ValueError(f"No kick endpoint for source type {source_type!r}")
        return f"/v3/{kind}/kick/{session_id}"

    async def abort_connection(self, session_id: str, source_type: str) -> None:
        """Kick a publisher; failures are logged, never raised."""
        try:
            path = self.kick_path(session_id, source_type)
        except ValueError as e:
            logger.warning(str(e), extra={"session_id": session_id})
            return

        try:
            response = await self._client.post(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"MediaMTX refused to kick {session_id}: HTTP {e.response.status_code}",
                extra={"session_id": session_id, "status_code": e.response.status_code},
            )
            return
        except httpx.HTTPError as e:
            logger.warning(
                f"Cannot reach MediaMTX API at {self._api_url} to kick {session_id}: {e}",
                extra={"session_id": session_id, "error": str(e)},
            )
            return

        logger.info(
            f"Kicked ingest connection {session_id}",
            extra={"session_id": session_id, "source_type": source_type},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

"""
Data models for MediaMTX hook events.

MediaMTX runs the hook script on runOnReady/runOnNotReady; the script posts
one of these payloads to the service.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

# MediaMTX reports native source types (rtmpConn, ...); the hook script may
# also send the short protocol name.
SOURCE_TYPES = {
    "rtmp": "rtmp",
    "rtmpConn": "rtmp",
    "rtsp": "rtsp",
    "rtspSession": "rtsp",
    "srt": "srt",
    "srtConn": "srt",
    "webrtc": "webrtc",
    "webRTCSession": "webrtc",
}


class HookEvent(BaseModel):
    """Base model for MediaMTX hook events."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "path": "live/abc123",
                "query": "",
                "sourceType": "rtmpConn",
                "sourceId": "7b9ad3f0-2c1e-4e5b-9a0d-1f2e3d4c5b6a",
            }
        },
    )

    path: str = Field(
        ...,
        min_length=1,
        description="Stream path as reported by MediaMTX (e.g., live/abc123)",
    )
    query: Optional[str] = Field(
        default=None, description="Query string from the publish URL"
    )
    source_type: str = Field(
        ...,
        alias="sourceType",
        description="Source protocol type",
    )
    source_id: str = Field(
        ...,
        alias="sourceId",
        min_length=1,
        description="Connection identifier, used as the live session id",
    )
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Event timestamp")
    correlation_id: str = Field(
        default_factory=lambda: str(uuid4()), description="Unique correlation ID for tracing"
    )

    @field_validator("source_type")
    @classmethod
    def validate_source_type(cls, v: str) -> str:
        """Normalise the source type to its protocol name."""
        if v not in SOURCE_TYPES:
            raise ValueError(f"source_type must be one of {sorted(SOURCE_TYPES)}, got {v}")
        return SOURCE_TYPES[v]

    @field_validator("path")
    @classmethod
    def normalise_path(cls, v: str) -> str:
        """MediaMTX paths come without the leading slash the ingest URL has."""
        return v if v.startswith("/") else f"/{v}"


class ReadyEvent(HookEvent):
    """Event triggered when a publisher starts pushing a stream."""

    event_type: str = Field(default="ready", description="Event type identifier")


class NotReadyEvent(HookEvent):
    """Event triggered when a publisher stops pushing a stream."""

    event_type: str = Field(default="not-ready", description="Event type identifier")

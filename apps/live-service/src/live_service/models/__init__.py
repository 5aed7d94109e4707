"""
Data models for live ingest sessions.

This module contains:
- Hook event models (MediaMTX runOnReady / runOnNotReady payloads)
- Metadata records (channels, playlists, provisional file entries)
- Live session state
"""

from live_service.models.events import HookEvent, NotReadyEvent, ReadyEvent
from live_service.models.records import (
    ChannelInfo,
    PlaylistRecord,
    PlaylistUrls,
    VideoFileRecord,
    VideoState,
)
from live_service.models.session import LiveSession, SessionState

__all__ = [
    "ChannelInfo",
    "HookEvent",
    "LiveSession",
    "NotReadyEvent",
    "PlaylistRecord",
    "PlaylistUrls",
    "ReadyEvent",
    "SessionState",
    "VideoFileRecord",
    "VideoState",
]

"""
Metadata store interface.

The orchestrator only needs these five operations from whatever persists
videos and playlists. Implementations raise their own exceptions on
failure; callers treat any exception as "store unavailable".
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Optional

from live_service.models.records import (
    ChannelInfo,
    PlaylistRecord,
    PlaylistUrls,
    VideoFileRecord,
)


class MetadataStore(ABC):
    """Narrow repository consumed by the live orchestrator."""

    @abstractmethod
    async def resolve_stream_key(self, stream_key: str) -> Optional[ChannelInfo]:
        """Look up the live channel owning a stream key.

        Returns:
            ChannelInfo, or None when no channel matches
        """

    @abstractmethod
    async def create_output_playlist(
        self,
        video_id: str,
        urls: PlaylistUrls,
        files: Sequence[VideoFileRecord],
    ) -> PlaylistRecord:
        """Create (or replace) the adaptive playlist of a video."""

    @abstractmethod
    async def mark_video_published(self, video_id: str) -> None:
        """Flag the video as published (live and watchable)."""

    @abstractmethod
    async def destroy_playlist(self, record: PlaylistRecord) -> None:
        """Delete a playlist and its file entries."""

    @abstractmethod
    async def mark_video_live_ended(self, video_id: str) -> None:
        """Flag the video's live broadcast as ended."""

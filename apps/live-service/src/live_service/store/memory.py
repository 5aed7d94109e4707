"""
In-memory metadata store.

Keeps channels, video states and playlists in process memory. Channels can
be loaded from a YAML file:

    channels:
      - stream_key: abc123
        video_id: "1"
        video_uuid: 9f1c...
        name: Main stage
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

import yaml

from live_service.models.records import (
    ChannelInfo,
    PlaylistRecord,
    PlaylistUrls,
    VideoFileRecord,
    VideoState,
)
from live_service.store.interface import MetadataStore

logger = logging.getLogger(__name__)


class InMemoryMetadataStore(MetadataStore):
    """Metadata store backed by dictionaries.

    Playlists are upserted per video: creating a playlist for a video that
    already has one replaces it.
    """

    def __init__(self, channels: Sequence[ChannelInfo] = ()) -> None:
        self._channels: dict[str, ChannelInfo] = {}
        self._video_states: dict[str, VideoState] = {}
        self._playlists: dict[str, PlaylistRecord] = {}
        self._lock = asyncio.Lock()

        for channel in channels:
            self.add_channel(channel)

    @classmethod
    def from_yaml(cls, path: Path) -> InMemoryMetadataStore:
        """Build a store from a YAML channel file.

        Raises:
            ValueError: If the file does not hold a channel list
        """
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        entries = data.get("channels") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ValueError(f"{path}: expected a top-level 'channels' list")

        channels = []
        for entry in entries:
            try:
                channels.append(
                    ChannelInfo(
                        video_id=str(entry["video_id"]),
                        video_uuid=str(entry["video_uuid"]),
                        stream_key=str(entry["stream_key"]),
                        name=str(entry.get("name", "")),
                    )
                )
            except (KeyError, TypeError, AttributeError) as e:
                raise ValueError(f"{path}: invalid channel entry {entry!r}") from e

        logger.info(f"Loaded {len(channels)} live channels from {path}")
        return cls(channels)

    def add_channel(self, channel: ChannelInfo) -> None:
        """Register a live channel.

        Raises:
            ValueError: If the stream key, video id or video uuid is already
                used by another channel (a video has a single live output)
        """
        if channel.stream_key in self._channels:
            raise ValueError(f"Duplicate stream key for video {channel.video_id}")
        for existing in self._channels.values():
            if existing.video_id == channel.video_id or existing.video_uuid == channel.video_uuid:
                raise ValueError(
                    f"Video {channel.video_id} ({channel.video_uuid}) already has a live channel"
                )
        self._channels[channel.stream_key] = channel
        self._video_states.setdefault(channel.video_id, VideoState.WAITING_FOR_LIVE)

    def video_state(self, video_id: str) -> VideoState | None:
        return self._video_states.get(video_id)

    def playlist_for(self, video_id: str) -> PlaylistRecord | None:
        return self._playlists.get(video_id)

    async def resolve_stream_key(self, stream_key: str) -> ChannelInfo | None:
        return self._channels.get(stream_key)

    async def create_output_playlist(
        self,
        video_id: str,
        urls: PlaylistUrls,
        files: Sequence[VideoFileRecord],
    ) -> PlaylistRecord:
        async with self._lock:
            record = PlaylistRecord(video_id=video_id, urls=urls, files=list(files))
            replaced = self._playlists.get(video_id)
            if replaced is not None:
                logger.debug(
                    f"Replacing playlist {replaced.id} of video {video_id}",
                    extra={"video_id": video_id},
                )
            self._playlists[video_id] = record
            return record

    async def mark_video_published(self, video_id: str) -> None:
        async with self._lock:
            self._video_states[video_id] = VideoState.PUBLISHED

    async def destroy_playlist(self, record: PlaylistRecord) -> None:
        async with self._lock:
            current = self._playlists.get(record.video_id)
            if current is not None and current.id == record.id:
                del self._playlists[record.video_id]

    async def mark_video_live_ended(self, video_id: str) -> None:
        async with self._lock:
            self._video_states[video_id] = VideoState.LIVE_ENDED

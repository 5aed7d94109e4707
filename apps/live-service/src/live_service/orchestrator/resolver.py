"""Stream key resolution against the metadata store."""

from __future__ import annotations

import logging

from live_service.errors import StreamKeyNotFoundError
from live_service.models.records import ChannelInfo, PlaylistUrls
from live_service.store.interface import MetadataStore

logger = logging.getLogger(__name__)

MASTER_PLAYLIST_PATH = "/static/streaming-playlists/hls/{uuid}/master.m3u8"
SEGMENTS_SHA256_PATH = "/static/streaming-playlists/hls/{uuid}/segments-sha256.json"


class StreamKeyResolver:
    """Looks up the live channel behind a stream key.

    Also derives the public playlist URLs of the resolved video.
    """

    def __init__(self, store: MetadataStore, public_base_url: str) -> None:
        self._store = store
        self._public_base_url = public_base_url.rstrip("/")

    async def resolve(self, stream_key: str) -> ChannelInfo:
        """Resolve a stream key.

        Raises:
            StreamKeyNotFoundError: If no channel owns the key
        """
        channel = await self._store.resolve_stream_key(stream_key)
        if channel is None:
            raise StreamKeyNotFoundError(stream_key)

        logger.debug(
            f"Stream key resolved to video {channel.video_id}",
            extra={"video_id": channel.video_id, "video_uuid": channel.video_uuid},
        )
        return channel

    def playlist_urls(self, channel: ChannelInfo) -> PlaylistUrls:
        return PlaylistUrls(
            playlist_url=self._public_base_url + MASTER_PLAYLIST_PATH.format(uuid=channel.video_uuid),
            segments_sha256_url=self._public_base_url
            + SEGMENTS_SHA256_PATH.format(uuid=channel.video_uuid),
        )

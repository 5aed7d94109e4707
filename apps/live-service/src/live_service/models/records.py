"""
Persisted metadata records exchanged with the metadata store.

File records for a live playlist are provisional: they are written before
encoding starts, so size, fps and hash are placeholders and stay that way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

PROVISIONAL_SIZE = -1
PROVISIONAL_FPS = -1
PROVISIONAL_INFO_HASH = "0" * 40


class VideoState(str, Enum):
    """Publication state of the video backing a live channel."""

    WAITING_FOR_LIVE = "waiting_for_live"
    PUBLISHED = "published"
    LIVE_ENDED = "live_ended"


@dataclass(frozen=True)
class ChannelInfo:
    """Live channel resolved from a stream key.

    Attributes:
        video_id: Store identifier of the backing video
        video_uuid: Public identifier, used for URLs and the output directory
        stream_key: Credential the broadcaster publishes with
        name: Display name
    """

    video_id: str
    video_uuid: str
    stream_key: str
    name: str = ""


@dataclass(frozen=True)
class PlaylistUrls:
    """Public URLs of a video's adaptive playlist."""

    playlist_url: str
    segments_sha256_url: str


@dataclass(frozen=True)
class VideoFileRecord:
    """One variant file entry of a playlist."""

    resolution: int
    size: int = PROVISIONAL_SIZE
    fps: int = PROVISIONAL_FPS
    extname: str = ".ts"
    info_hash: str = PROVISIONAL_INFO_HASH

    @property
    def provisional(self) -> bool:
        return self.size == PROVISIONAL_SIZE

    @classmethod
    def provisional_for(cls, resolution: int) -> VideoFileRecord:
        return cls(resolution=resolution)


@dataclass
class PlaylistRecord:
    """Stored adaptive playlist of a video."""

    video_id: str
    urls: PlaylistUrls
    files: list[VideoFileRecord] = field(default_factory=list)
    type: str = "hls"
    id: str = field(default_factory=lambda: str(uuid4()))

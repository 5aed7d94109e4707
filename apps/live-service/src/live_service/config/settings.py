"""
Live service configuration from environment variables.

- Environment variables use the LIVE_ prefix
- Defaults target a MediaMTX instance on the same host
- Validation via Pydantic Field constraints; bad values fail startup
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from live_service.transcoding.hls_args import HlsOptions
from live_service.transcoding.ladder import DEFAULT_RESOLUTIONS, plan_ladder


class LiveSettings(BaseSettings):
    """Live service configuration.

    Attributes:
        rtmp_base_path: Middle segment every ingest path must carry (/<base>/<key>)
        rtmp_input_url: Local RTMP address ffmpeg pulls the ingest stream from
        mediamtx_api_url: MediaMTX control API, used to kick rejected connections
        public_base_url: Base URL playlist URLs are built on
        hls_root: Parent directory of the per-video HLS output directories
        ffmpeg_path: ffmpeg executable
        resolutions: Output ladder heights, in playlist order
        segment_duration_s: HLS segment duration
        playlist_size: Number of segments kept in each live playlist
        frame_rate: Output frame rate
        gop_size: Keyframe interval in frames
        x264_preset: libx264 speed preset
        terminate_timeout_s: Grace period between SIGTERM and SIGKILL
        shutdown_timeout_s: Upper bound on waiting for sessions at shutdown
        channels_file: Optional YAML file with channels for the in-memory store
    """

    rtmp_base_path: str = Field(default="live", min_length=1, pattern=r"^[^/]+$")
    rtmp_input_url: str = Field(default="rtmp://127.0.0.1:1935")
    mediamtx_api_url: str = Field(default="http://127.0.0.1:9997")
    public_base_url: str = Field(default="http://localhost:9000")
    hls_root: Path = Field(default=Path("storage/streaming-playlists/hls"))
    ffmpeg_path: str = Field(default="ffmpeg", min_length=1)
    resolutions: list[int] = Field(default_factory=lambda: list(DEFAULT_RESOLUTIONS))
    segment_duration_s: int = Field(default=4, ge=1, le=30)
    playlist_size: int = Field(default=15, ge=1, le=100)
    frame_rate: int = Field(default=30, ge=1, le=120)
    gop_size: int = Field(default=60, ge=1, le=600)
    x264_preset: str = Field(default="superfast")
    terminate_timeout_s: float = Field(default=10.0, gt=0.0, le=120.0)
    shutdown_timeout_s: float = Field(default=30.0, gt=0.0, le=600.0)
    channels_file: Path | None = Field(default=None)

    model_config = {
        "env_prefix": "LIVE_",
        "case_sensitive": False,
    }

    @field_validator("resolutions")
    @classmethod
    def validate_resolutions(cls, v: list[int]) -> list[int]:
        """Every height must have an encode preset."""
        plan_ladder(v)
        return v

    @field_validator("rtmp_input_url", "mediamtx_api_url", "public_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_keyframe_alignment(self) -> LiveSettings:
        """Segment boundaries must land on keyframes in every variant."""
        frames_per_segment = self.frame_rate * self.segment_duration_s
        if frames_per_segment % self.gop_size != 0:
            raise ValueError(
                f"frame_rate * segment_duration_s ({frames_per_segment}) must be a "
                f"multiple of gop_size ({self.gop_size})"
            )
        return self

    def hls_options(self) -> HlsOptions:
        """Encoder/segmenter options derived from these settings."""
        return HlsOptions(
            segment_duration_s=self.segment_duration_s,
            playlist_size=self.playlist_size,
            frame_rate=self.frame_rate,
            gop_size=self.gop_size,
            x264_preset=self.x264_preset,
        )

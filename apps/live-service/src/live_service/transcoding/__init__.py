"""
Transcoding module.

Plans the resolution ladder and builds the ffmpeg invocation for it.

Components:
- BitrateVariant / plan_ladder: static per-resolution encode parameters
- HlsOptions / build_live_hls_args: ffmpeg argument vector for live HLS
"""

from __future__ import annotations

from live_service.transcoding.hls_args import (
    MASTER_PLAYLIST_NAME,
    HlsOptions,
    build_filter_graph,
    build_live_hls_args,
    build_var_stream_map,
)
from live_service.transcoding.ladder import (
    DEFAULT_RESOLUTIONS,
    RESOLUTION_PRESETS,
    BitrateVariant,
    plan_ladder,
)

__all__ = [
    "BitrateVariant",
    "DEFAULT_RESOLUTIONS",
    "HlsOptions",
    "MASTER_PLAYLIST_NAME",
    "RESOLUTION_PRESETS",
    "build_filter_graph",
    "build_live_hls_args",
    "build_var_stream_map",
    "plan_ladder",
]

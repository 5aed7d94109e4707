"""
ffmpeg argument builder for live HLS output.

Builds the full argument vector for a single ffmpeg process that reads the
ingest stream once, splits the decoded video into one branch per ladder
variant, and writes a rolling multi-variant HLS output with a master
playlist.

Flow:
    input -> split=N -> scale per branch -> libx264/aac per branch -> hls muxer

The output is a pure function of its inputs so it can be asserted on
without running an encoder.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from live_service.transcoding.ladder import BitrateVariant

MASTER_PLAYLIST_NAME = "master.m3u8"
VARIANT_PLAYLIST_PATTERN = "%v.m3u8"
SEGMENT_FILENAME_PATTERN = "%v-%d.ts"


@dataclass(frozen=True)
class HlsOptions:
    """Encoder and segmenter settings shared by all variants.

    frame_rate * segment_duration_s must be a multiple of gop_size for
    segment boundaries to land on keyframes in every variant.
    """

    segment_duration_s: int = 4
    playlist_size: int = 15
    frame_rate: int = 30
    gop_size: int = 60
    x264_preset: str = "superfast"
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    pixel_format: str = "yuv420p"


def build_filter_graph(variants: Sequence[BitrateVariant]) -> str:
    """Split the first video stream into one scaled branch per variant."""
    count = len(variants)
    graph = f"[v:0]split={count}" + "".join(f"[vtemp{i:03d}]" for i in range(count))

    for i, variant in enumerate(variants):
        graph += f";[vtemp{i:03d}]{variant.scale_filter()}[vout{i:03d}]"

    return graph


def build_var_stream_map(variant_count: int) -> str:
    """Pair video i with audio i for every variant of the master playlist."""
    return " ".join(f"v:{i},a:{i}" for i in range(variant_count))


def build_live_hls_args(
    input_url: str,
    output_dir: Path | str,
    variants: Sequence[BitrateVariant],
    options: HlsOptions | None = None,
) -> list[str]:
    """Build ffmpeg arguments (without the executable) for a live HLS ladder.

    Args:
        input_url: Ingest stream to pull (e.g., rtmp://127.0.0.1:1935/live/key)
        output_dir: Directory receiving segments and playlists
        variants: Planned ladder, in output order
        options: Shared encoder/segmenter settings

    Returns:
        Argument vector, deterministic for identical inputs

    Raises:
        ValueError: If no variants are given
    """
    if not variants:
        raise ValueError("Cannot build an HLS ladder without variants")

    opts = options or HlsOptions()
    out = os.fspath(output_dir)

    args: list[str] = ["-hide_banner", "-y", "-fflags", "nobuffer", "-i", input_url]

    args += ["-filter_complex", build_filter_graph(variants)]

    # Fixed GOP with scene-cut detection off keeps keyframes aligned across variants
    args += [
        "-r", str(opts.frame_rate),
        "-g", str(opts.gop_size),
        "-keyint_min", str(opts.gop_size),
        "-sc_threshold", "0",
        "-preset", opts.x264_preset,
        "-pix_fmt", opts.pixel_format,
    ]

    for i, variant in enumerate(variants):
        args += [
            "-map", f"[vout{i:03d}]",
            f"-c:v:{i}", opts.video_codec,
            f"-b:v:{i}", variant.video_bitrate,
            f"-maxrate:v:{i}", variant.maxrate,
            f"-bufsize:v:{i}", variant.bufsize,
            "-map", "a:0",
            f"-c:a:{i}", opts.audio_codec,
            f"-b:a:{i}", variant.audio_bitrate,
            f"-ar:a:{i}", str(variant.audio_sample_rate),
        ]

    args += [
        "-hls_time", str(opts.segment_duration_s),
        "-hls_list_size", str(opts.playlist_size),
        "-hls_flags", "delete_segments",
        "-hls_segment_filename", os.path.join(out, SEGMENT_FILENAME_PATTERN),
        "-master_pl_name", MASTER_PLAYLIST_NAME,
        "-var_stream_map", build_var_stream_map(len(variants)),
        "-f", "hls",
        os.path.join(out, VARIANT_PLAYLIST_PATTERN),
    ]

    return args

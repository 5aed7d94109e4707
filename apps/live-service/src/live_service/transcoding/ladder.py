"""
Bitrate ladder planning.

Maps target output heights to per-variant encode parameters. The ladder is
a fixed policy: it does not look at the resolution of the incoming stream,
so the scale filter built from it must clamp to the source size itself.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class BitrateVariant:
    """One row of the resolution ladder.

    Attributes:
        height: Target output height in pixels
        width: Bounding width used by the scale filter
        video_bitrate_kbps: Target H.264 bitrate
        audio_bitrate_kbps: Target AAC bitrate
        audio_sample_rate: AAC sample rate in Hz
    """

    height: int
    width: int
    video_bitrate_kbps: int
    audio_bitrate_kbps: int
    audio_sample_rate: int = 48000

    @property
    def video_bitrate(self) -> str:
        return f"{self.video_bitrate_kbps}k"

    @property
    def maxrate(self) -> str:
        return f"{self.video_bitrate_kbps}k"

    @property
    def bufsize(self) -> str:
        return f"{self.video_bitrate_kbps * 3 // 2}k"

    @property
    def audio_bitrate(self) -> str:
        return f"{self.audio_bitrate_kbps}k"

    def scale_filter(self) -> str:
        """Scale expression bounded by both the target box and the source size.

        min() against iw/ih keeps inputs already smaller than the target at
        their own size instead of upscaling them.
        """
        return (
            f"scale=w='min({self.width},iw)':h='min({self.height},ih)'"
            ":force_original_aspect_ratio=decrease:force_divisible_by=2"
        )


_PRESETS: dict[int, BitrateVariant] = {
    1080: BitrateVariant(height=1080, width=1920, video_bitrate_kbps=4000, audio_bitrate_kbps=192),
    720: BitrateVariant(height=720, width=1280, video_bitrate_kbps=2500, audio_bitrate_kbps=128),
    480: BitrateVariant(height=480, width=854, video_bitrate_kbps=1400, audio_bitrate_kbps=128),
    360: BitrateVariant(height=360, width=640, video_bitrate_kbps=800, audio_bitrate_kbps=96),
}

RESOLUTION_PRESETS: Mapping[int, BitrateVariant] = MappingProxyType(_PRESETS)

DEFAULT_RESOLUTIONS: tuple[int, ...] = (1080, 480, 360)


def plan_ladder(
    resolutions: Iterable[int],
    presets: Mapping[int, BitrateVariant] = RESOLUTION_PRESETS,
) -> list[BitrateVariant]:
    """Resolve target heights to encode parameters, keeping the given order.

    Args:
        resolutions: Target output heights, highest first by convention
        presets: Static parameter table keyed by height

    Returns:
        One BitrateVariant per requested height

    Raises:
        ValueError: If the list is empty, has duplicates, or names a height
            missing from the table
    """
    heights = list(resolutions)
    if not heights:
        raise ValueError("At least one output resolution is required")

    if len(set(heights)) != len(heights):
        raise ValueError(f"Duplicate output resolutions: {heights}")

    unknown = [h for h in heights if h not in presets]
    if unknown:
        raise ValueError(
            f"No encode preset for resolutions {unknown}; available: {sorted(presets, reverse=True)}"
        )

    return [presets[h] for h in heights]

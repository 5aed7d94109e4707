"""
Ingest path validation.

Runs before anything is allocated for a publish: the path must be exactly
/<base>/<stream-key>.
"""

from __future__ import annotations

from live_service.errors import InvalidPathError


def validate_live_path(path: str, base_path: str) -> str:
    """Check an ingest path and extract its stream key.

    Args:
        path: Path as published, e.g. "/live/abc123"
        base_path: Expected middle segment, e.g. "live"

    Returns:
        The stream key segment

    Raises:
        InvalidPathError: If the path does not split into exactly three
            "/"-separated segments, the middle one is not base_path, or the
            key is empty
    """
    parts = path.split("/")

    if len(parts) != 3:
        raise InvalidPathError(path, f"expected 3 segments, got {len(parts)}")

    if parts[0] != "":
        raise InvalidPathError(path, "path must start with '/'")

    if parts[1] != base_path:
        raise InvalidPathError(path, f"base segment must be {base_path!r}")

    if not parts[2]:
        raise InvalidPathError(path, "stream key is empty")

    return parts[2]

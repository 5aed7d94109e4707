"""
Error types for live session handling.

Validation errors are connection-scoped: the ingest connection is aborted
and no session is allocated. Everything else is terminal only to the
owning session.
"""

from __future__ import annotations


class LiveServiceError(Exception):
    """Base class for live service errors."""


class InvalidPathError(LiveServiceError):
    """Ingest path does not have the /<base>/<stream-key> shape."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid live path {path!r}: {reason}")


class StreamKeyNotFoundError(LiveServiceError):
    """No live channel is registered for the stream key."""

    def __init__(self, stream_key: str) -> None:
        self.stream_key = stream_key
        super().__init__(f"Unknown stream key {stream_key!r}")


class SessionAlreadyRegisteredError(LiveServiceError):
    """A session with the same id is already registered."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id!r} is already registered")


class StreamKeyInUseError(LiveServiceError):
    """Another registered session is already broadcasting on this stream key."""

    def __init__(self, stream_key: str, holder_session_id: str) -> None:
        self.stream_key = stream_key
        self.holder_session_id = holder_session_id
        super().__init__(
            f"Stream key {stream_key!r} is already held by session {holder_session_id!r}"
        )


class InvalidTransitionError(LiveServiceError):
    """A session was asked to move to a state it cannot reach."""

    def __init__(self, session_id: str, current: str, target: str) -> None:
        self.session_id = session_id
        self.current = current
        self.target = target
        super().__init__(f"Session {session_id!r} cannot move from {current} to {target}")


class OutputDirectoryInUseError(LiveServiceError):
    """Another registered session already writes to this output directory."""

    def __init__(self, output_dir: str, holder_session_id: str) -> None:
        self.output_dir = output_dir
        self.holder_session_id = holder_session_id
        super().__init__(
            f"Output directory {output_dir!r} is already held by session {holder_session_id!r}"
        )

"""
Session registry.

Single source of truth for which sessions are live. Every mutation takes
the registry lock, so a session can never be registered twice or evicted
twice, and a stream key and an output directory are each held by at most one
session at a time.
"""

from __future__ import annotations

import asyncio
import logging

from live_service.errors import (
    OutputDirectoryInUseError,
    SessionAlreadyRegisteredError,
    StreamKeyInUseError,
)
from live_service.models.session import LiveSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Concurrent mapping of session id to LiveSession."""

    def __init__(self) -> None:
        self._sessions: dict[str, LiveSession] = {}
        self._by_stream_key: dict[str, str] = {}
        self._by_output_dir: dict[str, str] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def register(self, session: LiveSession) -> None:
        """Insert a new session.

        Raises:
            SessionAlreadyRegisteredError: If the session id is taken
            StreamKeyInUseError: If another session holds the stream key
            OutputDirectoryInUseError: If another session writes to the same
                output directory
        """
        async with self._lock:
            if session.session_id in self._sessions:
                raise SessionAlreadyRegisteredError(session.session_id)

            holder = self._by_stream_key.get(session.stream_key)
            if holder is not None:
                raise StreamKeyInUseError(session.stream_key, holder)

            output_dir = str(session.output_dir)
            holder = self._by_output_dir.get(output_dir)
            if holder is not None:
                raise OutputDirectoryInUseError(output_dir, holder)

            self._sessions[session.session_id] = session
            self._by_stream_key[session.stream_key] = session.session_id
            self._by_output_dir[output_dir] = session.session_id

            logger.debug(
                f"Session {session.session_id} registered",
                extra={"session_id": session.session_id, "active_sessions": len(self._sessions)},
            )

    async def get(self, session_id: str) -> LiveSession | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def remove(self, session_id: str) -> LiveSession | None:
        """Evict a session; returns None if it was not registered."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return None

            if self._by_stream_key.get(session.stream_key) == session_id:
                del self._by_stream_key[session.stream_key]

            output_dir = str(session.output_dir)
            if self._by_output_dir.get(output_dir) == session_id:
                del self._by_output_dir[output_dir]

            logger.debug(
                f"Session {session_id} evicted",
                extra={"session_id": session_id, "active_sessions": len(self._sessions)},
            )
            return session

    async def snapshot(self) -> list[LiveSession]:
        async with self._lock:
            return list(self._sessions.values())

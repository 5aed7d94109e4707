"""
Live session model and lifecycle states.

Lifecycle:
    starting -> live -> ending -> ended
    starting -> ending -> ended      (unpublish or failure during startup)

A session is evicted from the registry only once it is ended, and it can
only become ended when no transcoder process is running for it.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from live_service.errors import InvalidTransitionError
from live_service.models.records import ChannelInfo, PlaylistRecord

if TYPE_CHECKING:
    from live_service.supervisor.process import ProcessSupervisor


class SessionState(str, Enum):
    STARTING = "starting"
    LIVE = "live"
    ENDING = "ending"
    ENDED = "ended"


_ALLOWED_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.STARTING: {SessionState.LIVE, SessionState.ENDING},
    SessionState.LIVE: {SessionState.ENDING},
    SessionState.ENDING: {SessionState.ENDED},
    SessionState.ENDED: set(),
}


@dataclass
class LiveSession:
    """One active broadcast.

    Attributes:
        session_id: Ingest connection id, unique per connection
        stream_key: Key extracted from the ingest path
        source_type: Ingest protocol (used to abort the connection)
        channel: Channel resolved from the stream key
        input_url: Local address ffmpeg pulls the stream from
        output_dir: Directory owned by this session while it is live
        playlist: Stored playlist, once created
        supervisor: Transcoder supervisor, once spawned
        state: Current lifecycle state
    """

    session_id: str
    stream_key: str
    source_type: str
    channel: ChannelInfo
    input_url: str
    output_dir: Path
    playlist: PlaylistRecord | None = None
    supervisor: ProcessSupervisor | None = None
    state: SessionState = SessionState.STARTING
    started_at: float = field(default_factory=time.monotonic)
    ended: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    _cleanup_claimed: bool = field(default=False, repr=False)

    @property
    def video_id(self) -> str:
        return self.channel.video_id

    @property
    def is_ending(self) -> bool:
        return self.state in (SessionState.ENDING, SessionState.ENDED)

    def transition_to(self, target: SessionState) -> None:
        """Move to target state.

        Raises:
            InvalidTransitionError: If target is not reachable from the
                current state, or the session would end while its process
                is still running
        """
        if target not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.session_id, self.state.value, target.value)

        if target is SessionState.ENDED and self.supervisor is not None and self.supervisor.running:
            raise InvalidTransitionError(self.session_id, self.state.value, target.value)

        self.state = target
        if target is SessionState.ENDED:
            self.ended.set()

    def begin_ending(self) -> bool:
        """Enter ending; safe to call any number of times.

        Returns:
            True if this call performed the transition
        """
        if self.is_ending:
            return False
        self.transition_to(SessionState.ENDING)
        return True

    def claim_cleanup(self) -> bool:
        """Return True exactly once, for whoever runs the cleanup."""
        if self._cleanup_claimed:
            return False
        self._cleanup_claimed = True
        return True

    def elapsed_s(self) -> float:
        return time.monotonic() - self.started_at

"""
Live session orchestrator.

Bridges ingest events to supervised ffmpeg HLS pipelines. Manages:
- Validation (path shape, stream key) before anything is allocated
- Session registry (session_id -> LiveSession)
- Pipeline startup (output dir, playlist record, video state, transcoder)
- Convergent teardown: unpublish, transcoder exit and startup failures
  all end in the same cleanup, which runs exactly once per session

Ordering guarantees:
- Cleanup only runs after the transcoder has exited (or never spawned)
- A session is evicted from the registry only after cleanup
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from functools import partial

from live_service.config.settings import LiveSettings
from live_service.errors import (
    InvalidPathError,
    OutputDirectoryInUseError,
    SessionAlreadyRegisteredError,
    StreamKeyInUseError,
    StreamKeyNotFoundError,
)
from live_service.ingest.interface import IngestController
from live_service.metrics.prometheus import LiveMetrics
from live_service.models.records import VideoFileRecord
from live_service.models.session import LiveSession, SessionState
from live_service.orchestrator.janitor import ArtifactJanitor
from live_service.orchestrator.path_validator import validate_live_path
from live_service.orchestrator.registry import SessionRegistry
from live_service.orchestrator.resolver import StreamKeyResolver
from live_service.store.interface import MetadataStore
from live_service.supervisor.process import ExitCallback, ProcessExit, ProcessSupervisor
from live_service.transcoding.hls_args import build_live_hls_args
from live_service.transcoding.ladder import plan_ladder

logger = logging.getLogger(__name__)

SupervisorFactory = Callable[..., ProcessSupervisor]


class LiveManager:
    """Owns every live session of the process.

    One instance per process, constructed at startup and handed to the
    IngestEventBridge.

    - handle_publish(): validate, resolve, register, start the transcoder
    - handle_unpublish(): move to ending and request transcoder termination
    - shutdown(): end all sessions and wait for their cleanup
    """

    def __init__(
        self,
        settings: LiveSettings,
        store: MetadataStore,
        ingest: IngestController,
        *,
        metrics: LiveMetrics | None = None,
        supervisor_factory: SupervisorFactory = ProcessSupervisor,
    ) -> None:
        self._settings = settings
        self._store = store
        self._ingest = ingest
        self._metrics = metrics or LiveMetrics()
        self._supervisor_factory = supervisor_factory

        self._registry = SessionRegistry()
        self._resolver = StreamKeyResolver(store, settings.public_base_url)
        self._janitor = ArtifactJanitor(store, self._metrics)

        logger.info(
            "LiveManager initialized",
            extra={
                "base_path": settings.rtmp_base_path,
                "resolutions": settings.resolutions,
                "hls_root": str(settings.hls_root),
            },
        )

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    async def active_sessions(self) -> list[LiveSession]:
        return await self._registry.snapshot()

    async def handle_publish(
        self, session_id: str, path: str, source_type: str = "rtmp"
    ) -> LiveSession | None:
        """Handle a publish event.

        Args:
            session_id: Ingest connection id
            path: Published path, e.g. "/live/abc123"
            source_type: Ingest protocol, used to abort the connection

        Returns:
            The registered session, or None if the publish was rejected or
            was a duplicate
        """
        log_extra = {"session_id": session_id, "path": path}
        logger.debug("Ingest stream received", extra={**log_extra, "source_type": source_type})

        try:
            stream_key = validate_live_path(path, self._settings.rtmp_base_path)
        except InvalidPathError as e:
            logger.warning(f"Live path is incorrect: {e.reason}", extra=log_extra)
            self._metrics.record_rejected("invalid_path")
            await self._abort(session_id, source_type)
            return None

        try:
            channel = await self._resolver.resolve(stream_key)
        except StreamKeyNotFoundError:
            logger.warning(
                f"Unknown live video with stream key {stream_key}",
                extra={**log_extra, "stream_key": stream_key},
            )
            self._metrics.record_rejected("unknown_stream_key")
            await self._abort(session_id, source_type)
            return None
        except Exception as e:
            logger.error(
                f"Cannot resolve stream key {stream_key}: {e}",
                extra={**log_extra, "stream_key": stream_key, "error": str(e)},
                exc_info=True,
            )
            self._metrics.record_rejected("resolve_error")
            await self._abort(session_id, source_type)
            return None

        session = LiveSession(
            session_id=session_id,
            stream_key=stream_key,
            source_type=source_type,
            channel=channel,
            input_url=f"{self._settings.rtmp_input_url}{path}",
            output_dir=self._settings.hls_root / channel.video_uuid,
        )

        try:
            await self._registry.register(session)
        except SessionAlreadyRegisteredError:
            logger.warning(
                f"Duplicate publish event for session {session_id}, ignoring",
                extra=log_extra,
            )
            return None
        except StreamKeyInUseError as e:
            logger.warning(
                f"Stream key of video {channel.video_id} is already live "
                f"in session {e.holder_session_id}",
                extra={**log_extra, "video_id": channel.video_id},
            )
            self._metrics.record_rejected("stream_key_in_use")
            await self._abort(session_id, source_type)
            return None
        except OutputDirectoryInUseError as e:
            logger.warning(
                f"Video {channel.video_id} is already live in session "
                f"{e.holder_session_id} under another stream key",
                extra={**log_extra, "video_id": channel.video_id, "output_dir": e.output_dir},
            )
            self._metrics.record_rejected("output_dir_in_use")
            await self._abort(session_id, source_type)
            return None

        self._metrics.record_session_started()
        logger.info(
            f"Live session {session_id} accepted for video {channel.video_id}",
            extra={**log_extra, "video_id": channel.video_id, "active_sessions": len(self._registry)},
        )

        await self._start_pipeline(session)
        return session

    async def handle_unpublish(self, session_id: str) -> None:
        """Handle an unpublish event.

        Unknown session ids (late or duplicate events) are ignored.
        """
        session = await self._registry.get(session_id)
        if session is None:
            logger.debug(
                f"Unpublish for unknown session {session_id}, nothing to stop",
                extra={"session_id": session_id},
            )
            return

        if not session.begin_ending():
            logger.debug(
                f"Session {session_id} already ending",
                extra={"session_id": session_id, "state": session.state.value},
            )
            return

        logger.info(
            f"Ingest stream of session {session_id} ended, stopping transcoder",
            extra={"session_id": session_id, "video_id": session.video_id},
        )

        # Without a supervisor the startup path is still running; it checks
        # the state before and after spawning.
        if session.supervisor is not None:
            await session.supervisor.terminate()

    async def shutdown(self) -> None:
        """End every session and wait for their cleanup.

        Called during service shutdown. Waits at most shutdown_timeout_s.
        """
        sessions = await self._registry.snapshot()
        if not sessions:
            logger.info("No live sessions to stop")
            return

        logger.info(
            f"Stopping {len(sessions)} live sessions",
            extra={"active_sessions": len(sessions)},
        )

        results = await asyncio.gather(
            *(self.handle_unpublish(s.session_id) for s in sessions),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, Exception)]
        for failure in failures:
            logger.error(f"Error stopping live session: {failure}", exc_info=failure)

        try:
            await asyncio.wait_for(
                asyncio.gather(*(s.ended.wait() for s in sessions)),
                timeout=self._settings.shutdown_timeout_s,
            )
        except asyncio.TimeoutError:
            remaining = [s.session_id for s in sessions if s.state is not SessionState.ENDED]
            logger.error(
                f"{len(remaining)} live sessions did not end within "
                f"{self._settings.shutdown_timeout_s}s",
                extra={"session_ids": remaining},
            )
            return

        logger.info(
            "Live session shutdown complete",
            extra={"total_stopped": len(sessions), "failures": len(failures)},
        )

    async def _start_pipeline(self, session: LiveSession) -> None:
        log_extra = {"session_id": session.session_id, "video_id": session.video_id}

        try:
            await asyncio.to_thread(session.output_dir.mkdir, parents=True, exist_ok=True)

            variants = plan_ladder(self._settings.resolutions)
            session.playlist = await self._store.create_output_playlist(
                session.video_id,
                self._resolver.playlist_urls(session.channel),
                [VideoFileRecord.provisional_for(v.height) for v in variants],
            )
            await self._store.mark_video_published(session.video_id)

            args = build_live_hls_args(
                session.input_url,
                session.output_dir,
                variants,
                self._settings.hls_options(),
            )
        except Exception as e:
            logger.error(
                f"Cannot start live pipeline for session {session.session_id}: {e}",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
            session.begin_ending()
            await self._finalize(session)
            return

        if session.is_ending:
            logger.info(
                f"Session {session.session_id} ended before its transcoder started",
                extra=log_extra,
            )
            await self._finalize(session)
            return

        on_exit: ExitCallback = partial(self._on_pipeline_exit, session)
        logger.info(
            f"Running live muxing for session {session.session_id}",
            extra={**log_extra, "argv": " ".join(args)},
        )

        try:
            supervisor = self._supervisor_factory(
                self._settings.ffmpeg_path,
                args,
                name=session.session_id,
                on_exit=on_exit,
                terminate_timeout_s=self._settings.terminate_timeout_s,
            )
            session.supervisor = supervisor
            await supervisor.start()
        except Exception as e:
            logger.error(
                f"Cannot start transcoder for session {session.session_id}: {e}",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
            self._metrics.record_pipeline_exit("spawn_failed")
            if session.supervisor is not None and session.supervisor.running:
                await session.supervisor.terminate()
            session.begin_ending()
            await self._finalize(session)
            return

        if supervisor.exited:
            # Spawn failed; the exit callback takes it from here
            return

        if session.state is SessionState.STARTING:
            session.transition_to(SessionState.LIVE)
            logger.info(f"Session {session.session_id} is live", extra=log_extra)
        elif session.state is SessionState.ENDING:
            await supervisor.terminate()

    async def _on_pipeline_exit(self, session: LiveSession, result: ProcessExit) -> None:
        log_extra = {
            "session_id": session.session_id,
            "video_id": session.video_id,
            "returncode": result.returncode,
        }

        if result.spawn_failed:
            logger.error(
                f"Transcoder for session {session.session_id} failed to start: {result.error}",
                extra=log_extra,
            )
            self._metrics.record_pipeline_exit("spawn_failed")
        elif result.clean:
            logger.info(
                f"Live transmuxing for session {session.session_id} ended",
                extra=log_extra,
            )
            self._metrics.record_pipeline_exit("clean")
        else:
            tail = "\n".join(result.stderr_tail)
            logger.error(
                f"Transcoder for session {session.session_id} exited with code "
                f"{result.returncode}:\n{tail}",
                extra={**log_extra, "stderr_tail": list(result.stderr_tail)},
            )
            self._metrics.record_pipeline_exit("failed")

        session.begin_ending()
        await self._finalize(session)

    async def _finalize(self, session: LiveSession) -> None:
        """Cleanup, evict and end a session; later calls are no-ops."""
        if not session.claim_cleanup():
            return

        try:
            await self._janitor.cleanup(session)
        finally:
            await self._registry.remove(session.session_id)
            session.transition_to(SessionState.ENDED)
            self._metrics.record_session_ended(session.elapsed_s())
            logger.info(
                f"Live session {session.session_id} ended",
                extra={
                    "session_id": session.session_id,
                    "video_id": session.video_id,
                    "active_sessions": len(self._registry),
                },
            )

    async def _abort(self, session_id: str, source_type: str) -> None:
        try:
            await self._ingest.abort_connection(session_id, source_type)
        except Exception as e:
            logger.warning(
                f"Cannot abort ingest connection {session_id}: {e}",
                extra={"session_id": session_id, "error": str(e)},
            )

"""
Pytest fixtures for live service tests.

Includes fixtures for:
- Settings pointed at a temporary HLS root
- In-memory metadata store with one live channel
- Ingest controller mock
- Fake transcoder supervisor (no subprocess)
- LiveManager wired with the fakes
- FastAPI test client
"""

from __future__ import annotations

import asyncio
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from live_service.config.settings import LiveSettings
from live_service.main import create_app
from live_service.models.records import ChannelInfo
from live_service.orchestrator.live_manager import LiveManager
from live_service.store.memory import InMemoryMetadataStore
from live_service.supervisor.process import ProcessExit

# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def hls_root(tmp_path: Path) -> Path:
    return tmp_path / "hls"


@pytest.fixture
def settings(hls_root: Path) -> LiveSettings:
    """Settings with a temporary HLS root and the default ladder."""
    return LiveSettings(
        hls_root=hls_root,
        rtmp_base_path="live",
        rtmp_input_url="rtmp://127.0.0.1:1935",
        public_base_url="http://localhost:9000",
        resolutions=[1080, 480, 360],
        terminate_timeout_s=2.0,
        shutdown_timeout_s=5.0,
    )


# =============================================================================
# Metadata store
# =============================================================================


class RecordingMetadataStore(InMemoryMetadataStore):
    """In-memory store that records every write it receives."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.calls: list[tuple[str, str]] = []

    async def create_output_playlist(self, video_id, urls, files):
        self.calls.append(("create_output_playlist", video_id))
        return await super().create_output_playlist(video_id, urls, files)

    async def mark_video_published(self, video_id):
        self.calls.append(("mark_video_published", video_id))
        await super().mark_video_published(video_id)

    async def destroy_playlist(self, record):
        self.calls.append(("destroy_playlist", record.video_id))
        await super().destroy_playlist(record)

    async def mark_video_live_ended(self, video_id):
        self.calls.append(("mark_video_live_ended", video_id))
        await super().mark_video_live_ended(video_id)

    def count(self, action: str) -> int:
        return sum(1 for name, _ in self.calls if name == action)


@pytest.fixture
def channel() -> ChannelInfo:
    return ChannelInfo(video_id="v1", video_uuid="uuid-v1", stream_key="abc123", name="Main stage")


@pytest.fixture
def store(channel: ChannelInfo) -> RecordingMetadataStore:
    """Store with a single channel: stream key abc123 -> video v1."""
    return RecordingMetadataStore([channel])


# =============================================================================
# Ingest controller
# =============================================================================


@pytest.fixture
def ingest() -> AsyncMock:
    """IngestController mock; abort_connection is awaited."""
    controller = AsyncMock()
    controller.abort_connection = AsyncMock(return_value=None)
    return controller


# =============================================================================
# Transcoder supervisor fake
# =============================================================================


class FakeSupervisor:
    """Stands in for ProcessSupervisor without spawning anything.

    The test drives the process end with finish().
    """

    def __init__(self, executable, args, *, name, on_exit, terminate_timeout_s=10.0, fail_spawn=False):
        self.executable = executable
        self.args = list(args)
        self.name = name
        self.terminate_timeout_s = terminate_timeout_s
        self._on_exit = on_exit
        self._fail_spawn = fail_spawn
        self._running = False
        self._exited = False
        self._terminate_requested = False
        self.started = False
        self.terminate_calls = 0
        self.exit_notifications = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def exited(self) -> bool:
        return self._exited

    async def start(self) -> None:
        self.started = True
        if self._fail_spawn:
            self._exited = True
            asyncio.create_task(self._notify(ProcessExit(returncode=None, error="No such file")))
            return
        self._running = True

    async def terminate(self) -> None:
        self.terminate_calls += 1
        self._terminate_requested = True
        if self._running:
            await self.finish(-15)

    async def finish(self, returncode: int, stderr_tail: tuple[str, ...] = ()) -> None:
        """Simulate the process exiting."""
        if self._exited:
            return
        self._running = False
        self._exited = True
        await self._notify(
            ProcessExit(
                returncode=returncode,
                stderr_tail=stderr_tail,
                terminated=self._terminate_requested,
            )
        )

    async def _notify(self, result: ProcessExit) -> None:
        self.exit_notifications += 1
        await self._on_exit(result)


class FakeSupervisorFactory:
    """supervisor_factory for LiveManager that keeps every FakeSupervisor."""

    def __init__(self) -> None:
        self.instances: list[FakeSupervisor] = []
        self.fail_spawn = False

    def __call__(self, executable, args, **kwargs) -> FakeSupervisor:
        supervisor = FakeSupervisor(executable, args, fail_spawn=self.fail_spawn, **kwargs)
        self.instances.append(supervisor)
        return supervisor

    @property
    def last(self) -> FakeSupervisor:
        return self.instances[-1]


@pytest.fixture
def supervisor_factory() -> FakeSupervisorFactory:
    return FakeSupervisorFactory()


@pytest.fixture
def manager(
    settings: LiveSettings,
    store: RecordingMetadataStore,
    ingest: AsyncMock,
    supervisor_factory: FakeSupervisorFactory,
) -> LiveManager:
    """LiveManager wired with the in-memory store and fake supervisors."""
    return LiveManager(settings, store, ingest, supervisor_factory=supervisor_factory)


# =============================================================================
# FastAPI Test Client
# =============================================================================


@pytest.fixture
def client(
    settings: LiveSettings,
    store: RecordingMetadataStore,
    ingest: AsyncMock,
) -> Generator[TestClient, None, None]:
    """Test client with the lifespan running.

    ffmpeg_path points nowhere, so accepted sessions end right away
    through the spawn-failure path.
    """
    app_settings = settings.model_copy(update={"ffmpeg_path": "/nonexistent/ffmpeg"})
    app = create_app(settings=app_settings, store=store, ingest=ingest)
    with TestClient(app) as test_client:
        yield test_client

"""
Unit tests for ArtifactJanitor.

Each of the three cleanup actions is attempted even when another fails.
"""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from live_service.models.records import ChannelInfo, PlaylistUrls, VideoState
from live_service.models.session import LiveSession
from live_service.orchestrator.janitor import MANAGED_EXTENSIONS, ArtifactJanitor, is_managed_artifact
from live_service.store.memory import InMemoryMetadataStore

URLS = PlaylistUrls(playlist_url="http://x/master.m3u8", segments_sha256_url="http://x/segments-sha256.json")


@pytest.fixture
def memory_store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore([ChannelInfo(video_id="v1", video_uuid="uuid-v1", stream_key="abc123")])


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "uuid-v1"
    directory.mkdir()
    for name in ("master.m3u8", "0.m3u8", "0-1.ts", "0-2.ts", "1-1.ts.tmp", "stream.mpd", "init.m4s"):
        (directory / name).write_bytes(b"x")
    (directory / "notes.txt").write_text("keep")
    (directory / "nested").mkdir()
    (directory / "nested" / "9-9.ts").write_bytes(b"x")
    return directory


@pytest_asyncio.fixture
async def session(memory_store: InMemoryMetadataStore, output_dir: Path) -> LiveSession:
    live = LiveSession(
        session_id="conn-1",
        stream_key="abc123",
        source_type="rtmp",
        channel=ChannelInfo(video_id="v1", video_uuid="uuid-v1", stream_key="abc123"),
        input_url="rtmp://127.0.0.1:1935/live/abc123",
        output_dir=output_dir,
    )
    live.playlist = await memory_store.create_output_playlist("v1", URLS, [])
    await memory_store.mark_video_published("v1")
    return live


@pytest.mark.unit
class TestManagedArtifacts:
    @pytest.mark.parametrize("name", ["a.ts", "master.m3u8", "x.mpd", "init.m4s", "0-3.ts.tmp"])
    def test_managed(self, name: str) -> None:
        assert is_managed_artifact(Path(name))

    @pytest.mark.parametrize("name", ["notes.txt", "segments-sha256.json", "thumb.jpg", "ts"])
    def test_not_managed(self, name: str) -> None:
        assert not is_managed_artifact(Path(name))

    def test_extensions(self) -> None:
        assert set(MANAGED_EXTENSIONS) == {".ts", ".m3u8", ".mpd", ".m4s", ".tmp"}


@pytest.mark.unit
class TestDeleteArtifacts:
    def test_deletes_only_managed_files(self, output_dir: Path) -> None:
        deleted, failed = ArtifactJanitor.delete_artifacts(output_dir)

        assert failed == []
        assert len(deleted) == 7
        assert sorted(p.name for p in output_dir.iterdir()) == ["nested", "notes.txt"]
        assert (output_dir / "nested" / "9-9.ts").exists()

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert ArtifactJanitor.delete_artifacts(tmp_path / "missing") == ([], [])

    def test_individual_failure_does_not_stop_others(self, output_dir: Path) -> None:
        original_unlink = Path.unlink

        def flaky_unlink(self, missing_ok=False):
            if self.name == "0-1.ts":
                raise PermissionError("read-only")
            return original_unlink(self, missing_ok=missing_ok)

        with patch.object(Path, "unlink", flaky_unlink):
            deleted, failed = ArtifactJanitor.delete_artifacts(output_dir)

        assert [p.name for p in failed] == ["0-1.ts"]
        assert len(deleted) == 6
        assert (output_dir / "0-1.ts").exists()
        assert not (output_dir / "0-2.ts").exists()


@pytest.mark.unit
class TestCleanup:
    @pytest.mark.asyncio
    async def test_all_actions_succeed(self, memory_store, session, output_dir) -> None:
        report = await ArtifactJanitor(memory_store).cleanup(session)

        assert report.complete
        assert report.playlist_destroyed
        assert report.video_marked_ended
        assert len(report.deleted_files) == 7
        assert memory_store.playlist_for("v1") is None
        assert memory_store.video_state("v1") is VideoState.LIVE_ENDED

    @pytest.mark.asyncio
    async def test_playlist_failure_does_not_block_others(self, memory_store, session, output_dir) -> None:
        memory_store.destroy_playlist = AsyncMock(side_effect=ConnectionError("db down"))

        report = await ArtifactJanitor(memory_store).cleanup(session)

        assert not report.complete
        assert not report.playlist_destroyed
        assert report.video_marked_ended
        assert len(report.deleted_files) == 7
        assert memory_store.video_state("v1") is VideoState.LIVE_ENDED

    @pytest.mark.asyncio
    async def test_video_state_failure_does_not_block_others(self, memory_store, session) -> None:
        memory_store.mark_video_live_ended = AsyncMock(side_effect=ConnectionError("db down"))

        report = await ArtifactJanitor(memory_store).cleanup(session)

        assert report.playlist_destroyed
        assert not report.video_marked_ended
        assert len(report.errors) == 1
        assert memory_store.playlist_for("v1") is None

    @pytest.mark.asyncio
    async def test_file_listing_failure_does_not_block_others(self, memory_store, session) -> None:
        with patch.object(ArtifactJanitor, "delete_artifacts", side_effect=OSError("io error")):
            report = await ArtifactJanitor(memory_store).cleanup(session)

        assert report.deleted_files == []
        assert report.playlist_destroyed
        assert report.video_marked_ended
        assert len(report.errors) == 1

    @pytest.mark.asyncio
    async def test_all_actions_fail(self, memory_store, session) -> None:
        memory_store.destroy_playlist = AsyncMock(side_effect=ConnectionError("db down"))
        memory_store.mark_video_live_ended = AsyncMock(side_effect=ConnectionError("db down"))

        with patch.object(ArtifactJanitor, "delete_artifacts", side_effect=OSError("io error")):
            report = await ArtifactJanitor(memory_store).cleanup(session)

        assert len(report.errors) == 3

    @pytest.mark.asyncio
    async def test_without_playlist_record(self, memory_store, session) -> None:
        """Startup can fail before the playlist exists."""
        session.playlist = None
        memory_store.destroy_playlist = AsyncMock()

        report = await ArtifactJanitor(memory_store).cleanup(session)

        memory_store.destroy_playlist.assert_not_called()
        assert report.complete
        assert not report.playlist_destroyed
        assert report.video_marked_ended

"""
End-of-session cleanup.

Three independent, best-effort actions:
1. Delete generated segments, playlists and partial files
2. Destroy the stored playlist record
3. Mark the video's live broadcast as ended

A failure in one action is logged and does not stop the others. Must only
run once the transcoder has exited, since it deletes files ffmpeg writes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from live_service.metrics.prometheus import LiveMetrics
from live_service.models.session import LiveSession
from live_service.store.interface import MetadataStore

logger = logging.getLogger(__name__)

MANAGED_EXTENSIONS = (".ts", ".m3u8", ".mpd", ".m4s", ".tmp")


@dataclass
class CleanupReport:
    """What a cleanup run did.

    Attributes:
        deleted_files: Artifacts removed from the output directory
        failed_files: Artifacts that could not be removed
        playlist_destroyed: Whether the playlist record was deleted
        video_marked_ended: Whether the video state was updated
        errors: One message per failed action or file
    """

    deleted_files: list[Path] = field(default_factory=list)
    failed_files: list[Path] = field(default_factory=list)
    playlist_destroyed: bool = False
    video_marked_ended: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.errors


def is_managed_artifact(path: Path) -> bool:
    return path.suffix in MANAGED_EXTENSIONS


class ArtifactJanitor:
    """Cleans up after a finished live session."""

    def __init__(self, store: MetadataStore, metrics: LiveMetrics | None = None) -> None:
        self._store = store
        self._metrics = metrics or LiveMetrics()

    async def cleanup(self, session: LiveSession) -> CleanupReport:
        """Run all three cleanup actions for a session.

        Never raises; failures are logged and listed in the report.
        """
        report = CleanupReport()
        log_extra = {"session_id": session.session_id, "video_id": session.video_id}

        try:
            deleted, failed = await asyncio.to_thread(self.delete_artifacts, session.output_dir)
            report.deleted_files.extend(deleted)
            report.failed_files.extend(failed)
            if failed:
                report.errors.extend(f"Cannot remove {path}" for path in failed)
                self._metrics.record_cleanup_failure("files")
        except Exception as e:
            logger.error(
                f"Cannot list live output directory {session.output_dir}: {e}",
                extra={**log_extra, "error": str(e)},
            )
            report.errors.append(f"Cannot list {session.output_dir}: {e}")
            self._metrics.record_cleanup_failure("files")

        if session.playlist is not None:
            try:
                await self._store.destroy_playlist(session.playlist)
                report.playlist_destroyed = True
            except Exception as e:
                logger.error(
                    f"Cannot remove live streaming playlist {session.playlist.id}: {e}",
                    extra={**log_extra, "error": str(e)},
                    exc_info=True,
                )
                report.errors.append(f"Cannot destroy playlist: {e}")
                self._metrics.record_cleanup_failure("playlist")
        else:
            logger.debug("No playlist record to destroy", extra=log_extra)

        try:
            await self._store.mark_video_live_ended(session.video_id)
            report.video_marked_ended = True
        except Exception as e:
            logger.error(
                f"Cannot save live-ended state of video {session.video_id}: {e}",
                extra={**log_extra, "error": str(e)},
                exc_info=True,
            )
            report.errors.append(f"Cannot mark video live ended: {e}")
            self._metrics.record_cleanup_failure("video_state")

        if report.complete:
            logger.info(
                f"Cleanup complete for session {session.session_id}: "
                f"{len(report.deleted_files)} files removed",
                extra=log_extra,
            )
        else:
            logger.warning(
                f"Cleanup for session {session.session_id} finished with "
                f"{len(report.errors)} failures",
                extra={**log_extra, "errors": report.errors},
            )

        return report

    @staticmethod
    def delete_artifacts(output_dir: Path) -> tuple[list[Path], list[Path]]:
        """Delete managed artifacts in output_dir (not recursive).

        Returns:
            (deleted, failed) paths

        Raises:
            OSError: If the directory exists but cannot be listed
        """
        deleted: list[Path] = []
        failed: list[Path] = []

        if not output_dir.is_dir():
            return deleted, failed

        for path in sorted(output_dir.iterdir()):
            if not path.is_file() or not is_managed_artifact(path):
                continue
            try:
                path.unlink(missing_ok=True)
                deleted.append(path)
            except OSError as e:
                logger.error(f"Cannot remove {path}: {e}", extra={"error": str(e)})
                failed.append(path)

        return deleted, failed

"""
Ingest event bridge.

Turns publish/unpublish notifications into independently scheduled tasks.
A slow or failing event never delays or breaks the handling of another
session's events: each event gets its own task, and whatever escapes a
task is logged by its done-callback instead of reaching the event source.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from live_service.ingest.interface import SessionEventHandler

logger = logging.getLogger(__name__)


class IngestEventBridge:
    """Schedules one error-isolated task per ingest event.

    Usage:
        bridge = IngestEventBridge(live_manager)
        bridge.on_publish("conn-1", "/live/abc123", "rtmp")
        bridge.on_unpublish("conn-1")
        await bridge.drain()
    """

    def __init__(self, handler: SessionEventHandler) -> None:
        self._handler = handler
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def on_publish(self, session_id: str, path: str, source_type: str = "rtmp") -> asyncio.Task:
        logger.debug(
            f"Publish event for {path}",
            extra={"session_id": session_id, "path": path, "source_type": source_type},
        )
        return self._spawn(
            self._handler.handle_publish(session_id, path, source_type),
            name=f"publish-{session_id}",
        )

    def on_unpublish(self, session_id: str) -> asyncio.Task:
        logger.debug("Unpublish event", extra={"session_id": session_id})
        return self._spawn(
            self._handler.handle_unpublish(session_id),
            name=f"unpublish-{session_id}",
        )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for the currently scheduled event tasks to finish."""
        if not self._tasks:
            return
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning(
                f"{len(pending)} ingest event tasks still running after drain",
                extra={"pending": len(pending)},
            )

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            logger.debug(f"Ingest event task {task.get_name()} cancelled")
            return

        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Cannot handle ingest event {task.get_name()}: {exc}",
                exc_info=exc,
                extra={"task": task.get_name()},
            )

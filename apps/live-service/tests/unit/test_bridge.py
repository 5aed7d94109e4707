"""
Unit tests for IngestEventBridge.

Every event runs in its own task and a failing event never reaches the
caller or delays other sessions.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from live_service.ingest.bridge import IngestEventBridge


@pytest.fixture
def handler() -> AsyncMock:
    mock = AsyncMock()
    mock.handle_publish = AsyncMock(return_value=None)
    mock.handle_unpublish = AsyncMock(return_value=None)
    return mock


@pytest.mark.unit
class TestEventDispatch:
    @pytest.mark.asyncio
    async def test_publish_dispatched_to_handler(self, handler: AsyncMock) -> None:
        bridge = IngestEventBridge(handler)

        task = bridge.on_publish("conn-1", "/live/abc123", "rtmp")
        await task

        handler.handle_publish.assert_awaited_once_with("conn-1", "/live/abc123", "rtmp")
        assert task.get_name() == "publish-conn-1"

    @pytest.mark.asyncio
    async def test_unpublish_dispatched_to_handler(self, handler: AsyncMock) -> None:
        bridge = IngestEventBridge(handler)

        task = bridge.on_unpublish("conn-1")
        await task

        handler.handle_unpublish.assert_awaited_once_with("conn-1")
        assert task.get_name() == "unpublish-conn-1"

    @pytest.mark.asyncio
    async def test_on_publish_does_not_wait_for_handler(self, handler: AsyncMock) -> None:
        release = asyncio.Event()

        async def slow_publish(*args):
            await release.wait()

        handler.handle_publish.side_effect = slow_publish
        bridge = IngestEventBridge(handler)

        task = bridge.on_publish("conn-1", "/live/abc123")

        assert not task.done()
        assert bridge.pending == 1

        release.set()
        await bridge.drain()
        assert bridge.pending == 0


@pytest.mark.unit
class TestErrorIsolation:
    @pytest.mark.asyncio
    async def test_failing_event_is_logged_not_raised(self, handler: AsyncMock, caplog) -> None:
        handler.handle_publish.side_effect = RuntimeError("store unreachable")
        bridge = IngestEventBridge(handler)

        bridge.on_publish("conn-1", "/live/abc123")
        await bridge.drain()

        assert bridge.pending == 0
        assert "store unreachable" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_does_not_affect_other_sessions(self, handler: AsyncMock) -> None:
        async def publish(session_id, path, source_type):
            if session_id == "bad":
                raise RuntimeError("boom")

        handler.handle_publish.side_effect = publish
        bridge = IngestEventBridge(handler)

        bad = bridge.on_publish("bad", "/live/k1")
        good = bridge.on_publish("good", "/live/k2")
        await bridge.drain()

        assert bad.exception() is not None
        assert good.exception() is None
        assert handler.handle_publish.await_count == 2

    @pytest.mark.asyncio
    async def test_slow_event_does_not_block_others(self, handler: AsyncMock) -> None:
        release = asyncio.Event()

        async def publish(session_id, path, source_type):
            if session_id == "slow":
                await release.wait()

        handler.handle_publish.side_effect = publish
        bridge = IngestEventBridge(handler)

        slow = bridge.on_publish("slow", "/live/k1")
        fast = bridge.on_publish("fast", "/live/k2")
        await asyncio.wait_for(fast, timeout=1)

        assert not slow.done()
        release.set()
        await bridge.drain()


@pytest.mark.unit
class TestDrain:
    @pytest.mark.asyncio
    async def test_drain_without_tasks(self, handler: AsyncMock) -> None:
        await IngestEventBridge(handler).drain()

    @pytest.mark.asyncio
    async def test_drain_timeout_leaves_task_running(self, handler: AsyncMock, caplog) -> None:
        async def stuck_unpublish(session_id):
            await asyncio.sleep(10)

        handler.handle_unpublish.side_effect = stuck_unpublish
        bridge = IngestEventBridge(handler)

        task = bridge.on_unpublish("conn-1")
        await bridge.drain(timeout=0.05)

        assert not task.done()
        assert "still running" in caplog.text
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

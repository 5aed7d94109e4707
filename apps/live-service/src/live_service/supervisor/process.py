"""
Transcoder process supervision.

Spawns one subprocess, forwards its output to logging line by line, and
reports its end through a single exit callback. Spawn failures go through
the same callback instead of raising, so callers have one place to react
to "the pipeline is no longer running".
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import deque
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 20

# Longest run of output without a line break kept before it is flushed as a line
MAX_PENDING_BYTES = 64 * 1024

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")


@dataclass(frozen=True)
class ProcessExit:
    """How a supervised process ended.

    Attributes:
        returncode: Exit code (negative for signals), None if it never spawned
        error: Spawn error description, if any
        stderr_tail: Last lines written to stderr
        terminated: Whether termination had been requested
    """

    returncode: int | None
    error: str | None = None
    stderr_tail: tuple[str, ...] = field(default=())
    terminated: bool = False

    @property
    def spawn_failed(self) -> bool:
        return self.returncode is None

    @property
    def clean(self) -> bool:
        if self.spawn_failed:
            return False
        return self.returncode == 0 or self.terminated


ExitCallback = Callable[[ProcessExit], Awaitable[None]]


class ProcessSupervisor:
    """Supervises a single subprocess.

    Usage:
        supervisor = ProcessSupervisor("ffmpeg", args, name=session_id, on_exit=handler)
        await supervisor.start()
        ...
        await supervisor.terminate()

    Attributes:
        executable: Program to run
        args: Arguments, excluding the executable
        name: Label used in log records (the session id)
    """

    def __init__(
        self,
        executable: str,
        args: Sequence[str],
        *,
        name: str,
        on_exit: ExitCallback,
        terminate_timeout_s: float = 10.0,
    ) -> None:
        self.executable = executable
        self.args = list(args)
        self.name = name
        self._on_exit = on_exit
        self._terminate_timeout_s = terminate_timeout_s

        self._process: asyncio.subprocess.Process | None = None
        self._watch_task: asyncio.Task | None = None
        self._exit: asyncio.Future[ProcessExit] | None = None
        self._stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self._terminate_requested = False
        self._started = False

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def exited(self) -> bool:
        return self._exit is not None and self._exit.done()

    async def start(self) -> None:
        """Spawn the process and start watching it.

        Never raises for spawn errors; they are reported via the exit callback.

        Raises:
            RuntimeError: If called twice
        """
        if self._started:
            raise RuntimeError(f"Supervisor {self.name} already started")
        self._started = True

        loop = asyncio.get_running_loop()
        self._exit = loop.create_future()

        logger.info(
            f"Spawning {self.executable} for {self.name}",
            extra={"session_id": self.name, "argv": " ".join([self.executable, *self.args])},
        )

        try:
            self._process = await asyncio.create_subprocess_exec(
                self.executable,
                *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            # ValueError: argv that cannot be passed to exec (e.g. embedded NUL)
            logger.error(
                f"Failed to spawn {self.executable} for {self.name}: {e}",
                extra={"session_id": self.name, "error": str(e)},
            )
            result = ProcessExit(returncode=None, error=str(e))
            self._exit.set_result(result)
            self._watch_task = asyncio.create_task(
                self._deliver(result), name=f"supervisor-{self.name}"
            )
            return

        logger.info(
            f"{self.executable} started with PID {self._process.pid} for {self.name}",
            extra={"session_id": self.name, "pid": self._process.pid},
        )
        self._watch_task = asyncio.create_task(self._watch(), name=f"supervisor-{self.name}")

    async def terminate(self) -> None:
        """Ask the process to stop; kill it if it outlives the grace period.

        Returns once the process has exited. No-op if it is not running.
        """
        self._terminate_requested = True

        if not self.running or self._process is None or self._exit is None:
            return

        logger.info(
            f"Terminating transcoder for {self.name} (PID {self._process.pid})",
            extra={"session_id": self.name, "pid": self._process.pid},
        )

        try:
            self._process.terminate()
        except ProcessLookupError:
            return

        try:
            await asyncio.wait_for(asyncio.shield(self._exit), timeout=self._terminate_timeout_s)
        except asyncio.TimeoutError:
            logger.warning(
                f"Transcoder for {self.name} did not exit within "
                f"{self._terminate_timeout_s}s, killing it",
                extra={"session_id": self.name, "pid": self._process.pid},
            )
            try:
                self._process.kill()
            except ProcessLookupError:
                pass
            await asyncio.shield(self._exit)

    async def wait(self) -> ProcessExit:
        """Wait until the process has exited (or failed to spawn)."""
        if self._exit is None:
            raise RuntimeError(f"Supervisor {self.name} not started")
        return await asyncio.shield(self._exit)

    async def _watch(self) -> None:
        assert self._process is not None
        process = self._process

        try:
            await asyncio.gather(
                self._pump(process.stdout, "stdout"),
                self._pump(process.stderr, "stderr"),
            )
        except Exception as e:
            logger.warning(
                f"Lost output of transcoder for {self.name}: {e}",
                extra={"session_id": self.name, "error": str(e)},
            )
        returncode = await process.wait()

        result = ProcessExit(
            returncode=returncode,
            stderr_tail=tuple(self._stderr_tail),
            terminated=self._terminate_requested,
        )
        assert self._exit is not None
        self._exit.set_result(result)
        await self._deliver(result)

    async def _pump(self, stream: asyncio.StreamReader | None, label: str) -> None:
        if stream is None:
            return

        # ffmpeg rewrites its progress line with bare \r, so split on both
        pending = b""
        while True:
            chunk = await stream.read(4096)
            if not chunk:
                break
            pending += chunk
            *lines, pending = _LINE_BREAK.split(pending)
            for line in lines:
                self._log_line(line, label)
            if len(pending) > MAX_PENDING_BYTES:
                self._log_line(pending, label)
                pending = b""

        if pending:
            self._log_line(pending, label)

    def _log_line(self, line: bytes, label: str) -> None:
        text = line.decode(errors="replace").strip()
        if not text:
            return
        if label == "stderr":
            self._stderr_tail.append(text)
        logger.debug(
            f"[{self.name}] {text}",
            extra={"session_id": self.name, "stream": label},
        )

    async def _deliver(self, result: ProcessExit) -> None:
        try:
            await self._on_exit(result)
        except Exception:
            logger.exception(
                f"Exit handler failed for {self.name}",
                extra={"session_id": self.name},
            )

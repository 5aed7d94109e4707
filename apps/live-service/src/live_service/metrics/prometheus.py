"""
Prometheus metrics for live sessions.

- Active session gauge and start counter
- Rejected publish attempts by reason
- Transcoder exits by outcome
- Cleanup failures by janitor action
- Session duration histogram
"""

from __future__ import annotations

import logging
from typing import ClassVar

from prometheus_client import Counter, Gauge, Histogram

logger = logging.getLogger(__name__)


class LiveMetrics:
    """Prometheus metrics for the live orchestrator.

    All metrics use the 'live_service_sessions' prefix.

    Note: Metrics are class-level singletons to avoid Prometheus
    "Duplicated timeseries" errors when creating multiple instances.
    """

    NAMESPACE = "live_service"
    SUBSYSTEM = "sessions"

    _active: ClassVar[Gauge | None] = None
    _started: ClassVar[Counter | None] = None
    _rejected: ClassVar[Counter | None] = None
    _pipeline_exits: ClassVar[Counter | None] = None
    _cleanup_failures: ClassVar[Counter | None] = None
    _duration: ClassVar[Histogram | None] = None
    _metrics_initialized: ClassVar[bool] = False

    def __init__(self) -> None:
        self._ensure_metrics_initialized()

    @classmethod
    def _ensure_metrics_initialized(cls) -> None:
        """Initialize all Prometheus metrics (once per class)."""
        if cls._metrics_initialized:
            return

        prefix = f"{cls.NAMESPACE}_{cls.SUBSYSTEM}"

        cls._active = Gauge(
            f"{prefix}_active",
            "Live sessions currently registered",
        )

        cls._started = Counter(
            f"{prefix}_started_total",
            "Live sessions accepted and registered",
        )

        cls._rejected = Counter(
            f"{prefix}_rejected_total",
            "Publish attempts rejected before a session was created",
            ["reason"],  # invalid_path|unknown_stream_key|stream_key_in_use|output_dir_in_use|resolve_error
        )

        cls._pipeline_exits = Counter(
            f"{prefix}_pipeline_exits_total",
            "Transcoder process exits",
            ["outcome"],  # clean|failed|spawn_failed
        )

        cls._cleanup_failures = Counter(
            f"{prefix}_cleanup_failures_total",
            "Failed end-of-session cleanup actions",
            ["action"],  # files|playlist|video_state
        )

        cls._duration = Histogram(
            f"{prefix}_duration_seconds",
            "Live session duration from publish to ended",
            buckets=[10, 60, 300, 900, 1800, 3600, 7200, 14400, 28800],
        )

        cls._metrics_initialized = True

    @property
    def active(self) -> Gauge:
        return self._active

    @property
    def started(self) -> Counter:
        return self._started

    @property
    def rejected(self) -> Counter:
        return self._rejected

    @property
    def pipeline_exits(self) -> Counter:
        return self._pipeline_exits

    @property
    def cleanup_failures(self) -> Counter:
        return self._cleanup_failures

    @property
    def duration(self) -> Histogram:
        return self._duration

    def record_session_started(self) -> None:
        self.started.inc()
        self.active.inc()

    def record_session_ended(self, duration_s: float) -> None:
        self.active.dec()
        self.duration.observe(duration_s)

    def record_rejected(self, reason: str) -> None:
        """Record a rejected publish.

        Args:
            reason: "invalid_path", "unknown_stream_key", "stream_key_in_use",
                "output_dir_in_use",
                or "resolve_error"
        """
        self.rejected.labels(reason=reason).inc()

    def record_pipeline_exit(self, outcome: str) -> None:
        """Record a transcoder exit.

        Args:
            outcome: "clean", "failed", or "spawn_failed"
        """
        self.pipeline_exits.labels(outcome=outcome).inc()

    def record_cleanup_failure(self, action: str) -> None:
        """Record a failed janitor action.

        Args:
            action: "files", "playlist", or "video_state"
        """
        self.cleanup_failures.labels(action=action).inc()

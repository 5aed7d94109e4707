"""
Logging configuration for the live service.

Usage:
  LOG_LEVEL sets the level (default INFO).
  LOG_FOCUS=1 keeps only the session lifecycle modules at LOG_LEVEL and
  drops everything else to WARNING.

Modules included in focused logging:
  - live_service.orchestrator.live_manager (session lifecycle)
  - live_service.orchestrator.janitor (cleanup)
  - live_service.supervisor.process (ffmpeg output and exits)

Example:
  LOG_LEVEL=DEBUG LOG_FOCUS=1 python -m live_service
"""

import logging
import os

FOCUSED_MODULES = [
    "live_service.orchestrator.live_manager",
    "live_service.orchestrator.janitor",
    "live_service.supervisor.process",
]


def configure_focused_logging(level: str | None = None) -> None:
    """Configure root logging, optionally focused on lifecycle modules.

    Args:
        level: Overrides LOG_LEVEL when given
    """
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_focus = os.getenv("LOG_FOCUS", "0") == "1"

    log_format = "%(asctime)s.%(msecs)03d | %(name)s | %(levelname)s | %(message)s"
    date_format = "%H:%M:%S"

    logging.basicConfig(
        level=log_level if not log_focus else logging.WARNING,
        format=log_format,
        datefmt=date_format,
        force=True,
    )

    if not log_focus:
        return

    for module in FOCUSED_MODULES:
        logging.getLogger(module).setLevel(log_level)

    logging.getLogger().warning(
        f"Focused logging enabled: {', '.join(FOCUSED_MODULES)} at {log_level}"
    )

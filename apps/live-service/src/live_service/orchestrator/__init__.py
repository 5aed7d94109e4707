"""
Live session orchestration module.

Turns ingest events into supervised transcoding sessions and cleans up
after them.
"""

from live_service.orchestrator.janitor import ArtifactJanitor, CleanupReport
from live_service.orchestrator.live_manager import LiveManager
from live_service.orchestrator.path_validator import validate_live_path
from live_service.orchestrator.registry import SessionRegistry
from live_service.orchestrator.resolver import StreamKeyResolver

__all__ = [
    "ArtifactJanitor",
    "CleanupReport",
    "LiveManager",
    "SessionRegistry",
    "StreamKeyResolver",
    "validate_live_path",
]

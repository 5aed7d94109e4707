"""
Process supervision module.

Components:
- ProcessSupervisor: spawns and watches the transcoder subprocess
- ProcessExit: exit report delivered exactly once per process
"""

from __future__ import annotations

from live_service.supervisor.process import ProcessExit, ProcessSupervisor

__all__ = [
    "ProcessExit",
    "ProcessSupervisor",
]

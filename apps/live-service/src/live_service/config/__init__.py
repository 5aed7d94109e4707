"""
Configuration module for the live service.

Exports:
    LiveSettings: Service configuration loaded from LIVE_* variables
"""

from live_service.config.settings import LiveSettings

__all__ = [
    "LiveSettings",
]

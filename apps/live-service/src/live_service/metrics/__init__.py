"""
Metrics module for Prometheus observability.

Components:
- LiveMetrics: Prometheus metric definitions and helpers
"""

from __future__ import annotations

from live_service.metrics.prometheus import LiveMetrics

__all__ = [
    "LiveMetrics",
]

"""
Metadata store module.

Components:
- MetadataStore: interface the orchestrator reads and writes through
- InMemoryMetadataStore: dictionary-backed implementation
"""

from live_service.store.interface import MetadataStore
from live_service.store.memory import InMemoryMetadataStore

__all__ = [
    "InMemoryMetadataStore",
    "MetadataStore",
]

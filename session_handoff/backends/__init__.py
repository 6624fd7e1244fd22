"""
Platform backends.

``interfaces`` defines the contracts the workflow uses. ``memory`` runs
everything in-process; ``apify_platform`` talks to the Apify platform and
is imported explicitly so the SDK is only loaded when needed.
"""

from .interfaces import (
    Platform,
    SessionPool,
    SessionHandle,
    KeyValueStore,
    Dataset,
)
from .memory import LocalPlatform, LocalStorage, InMemoryKeyValueStore, InMemoryDataset

__all__ = [
    "Platform",
    "SessionPool",
    "SessionHandle",
    "KeyValueStore",
    "Dataset",
    "LocalPlatform",
    "LocalStorage",
    "InMemoryKeyValueStore",
    "InMemoryDataset",
]

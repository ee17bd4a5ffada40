"""Persistence for the cached feed snapshot.

This module provides the store interface shared by the cache loader and
every backend, along with the file-backed and in-memory stores.
"""

from feedcache.storage.base import (
    Empty,
    FeedStore,
    Found,
    RetrievalFailure,
    RetrievalResult,
    StoreDeleteError,
    StoreError,
    StoreLockError,
    StoreReadError,
    StoreWriteError,
)
from feedcache.storage.codable import FileFeedStore
from feedcache.storage.memory import InMemoryFeedStore

__all__ = [
    "FeedStore",
    "FileFeedStore",
    "InMemoryFeedStore",
    "Empty",
    "Found",
    "RetrievalFailure",
    "RetrievalResult",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "StoreDeleteError",
    "StoreLockError",
]

"""feedcache: Local cache for the last fetched feed with a freshness policy."""

__version__ = "0.1.0"

from feedcache.cache import CacheConfig, LoadFailure, LoadSuccess, LocalFeedLoader
from feedcache.models import CacheSnapshot, FeedItem, LocalFeedItem
from feedcache.storage import FeedStore, FileFeedStore, InMemoryFeedStore

__all__ = [
    "LocalFeedLoader",
    "LoadSuccess",
    "LoadFailure",
    "CacheConfig",
    "FeedItem",
    "LocalFeedItem",
    "CacheSnapshot",
    "FeedStore",
    "FileFeedStore",
    "InMemoryFeedStore",
    "__version__",
]

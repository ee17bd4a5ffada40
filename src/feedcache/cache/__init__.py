"""Local caching of the last fetched feed.

Key components:
- LocalFeedLoader: Save, load and validate the cached feed
- CacheConfig: Configuration management
- is_cache_valid: Freshness policy (7 day max age)
"""

from feedcache.cache.config import CacheConfig, get_global_config, set_global_config
from feedcache.cache.loader import (
    LoadFailure,
    LoadResult,
    LoadSuccess,
    LocalFeedLoader,
)
from feedcache.cache.policy import MAX_CACHE_AGE, get_cache_age_remaining, is_cache_valid

__all__ = [
    "LocalFeedLoader",
    "LoadSuccess",
    "LoadFailure",
    "LoadResult",
    "CacheConfig",
    "get_global_config",
    "set_global_config",
    "MAX_CACHE_AGE",
    "is_cache_valid",
    "get_cache_age_remaining",
]

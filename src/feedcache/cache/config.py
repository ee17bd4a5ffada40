"""Feed cache configuration management."""

import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path.home() / ".feedcache"


@dataclass
class CacheConfig:
    """Configuration for the feed cache.

    Attributes:
        store_path: File the feed snapshot is persisted to
        max_age_days: Days a cached snapshot stays fresh (7 by default)
        lock_timeout: Seconds to wait for the store file lock
    """

    store_path: Path = DEFAULT_CACHE_DIR / "feed.store"
    max_age_days: int = 7
    lock_timeout: float = 10.0

    def __post_init__(self):
        """Ensure store_path is a Path object and values are usable."""
        if self.store_path is None:
            self.store_path = DEFAULT_CACHE_DIR / "feed.store"
        self.store_path = Path(self.store_path).expanduser()

        if self.max_age_days <= 0:
            raise ValueError(f"max_age_days must be positive, got {self.max_age_days}")
        if self.lock_timeout <= 0:
            raise ValueError(f"lock_timeout must be positive, got {self.lock_timeout}")

    @property
    def max_age(self) -> timedelta:
        """Maximum age of a fresh snapshot."""
        return timedelta(days=self.max_age_days)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            CacheConfig instance
        """
        if config_path is None:
            config_path = DEFAULT_CACHE_DIR / "config.json"

        if not config_path.exists():
            return cls()

        with open(config_path, "r") as f:
            data = json.load(f)

        if "store_path" in data:
            data["store_path"] = Path(data["store_path"])

        return cls(**data)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        Args:
            config_path: Path to config file. If None, uses the directory of
                store_path.
        """
        if config_path is None:
            config_path = self.store_path.parent / "config.json"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "store_path": str(self.store_path),
            "max_age_days": self.max_age_days,
            "lock_timeout": self.lock_timeout,
        }

        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            FEEDCACHE_STORE_PATH: File the feed snapshot is persisted to
            FEEDCACHE_MAX_AGE_DAYS: Days a snapshot stays fresh
            FEEDCACHE_LOCK_TIMEOUT: Seconds to wait for the store lock

        Returns:
            CacheConfig instance
        """
        config = cls()

        if os.getenv("FEEDCACHE_STORE_PATH"):
            config.store_path = Path(os.getenv("FEEDCACHE_STORE_PATH")).expanduser()

        if os.getenv("FEEDCACHE_MAX_AGE_DAYS"):
            config.max_age_days = int(os.getenv("FEEDCACHE_MAX_AGE_DAYS"))

        if os.getenv("FEEDCACHE_LOCK_TIMEOUT"):
            config.lock_timeout = float(os.getenv("FEEDCACHE_LOCK_TIMEOUT"))

        # Re-run validation on the overridden values
        config.__post_init__()
        return config


# Global cache configuration instance
_global_config: Optional[CacheConfig] = None


def get_global_config() -> CacheConfig:
    """Get global cache configuration.

    Returns:
        Global CacheConfig instance
    """
    global _global_config
    if _global_config is None:
        # Config file wins, then env, then defaults
        config_path = DEFAULT_CACHE_DIR / "config.json"
        if config_path.exists():
            try:
                _global_config = CacheConfig.load(config_path)
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Ignoring unusable feed cache config {config_path}: {e}")
        if _global_config is None:
            try:
                _global_config = CacheConfig.from_env()
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Ignoring unusable FEEDCACHE_* environment: {e}")
                _global_config = CacheConfig()
    return _global_config


def set_global_config(config: Optional[CacheConfig]) -> None:
    """Set global cache configuration.

    Args:
        config: CacheConfig instance to use globally, or None to reset
    """
    global _global_config
    _global_config = config

"""In-process feed store."""

import logging
from datetime import datetime
from typing import List, Optional

from feedcache.models import CacheSnapshot, LocalFeedItem
from feedcache.storage.base import (
    DeletionCompletion,
    Empty,
    FeedStore,
    Found,
    InsertionCompletion,
    RetrievalCompletion,
)

logger = logging.getLogger(__name__)


class InMemoryFeedStore(FeedStore):
    """Feed store holding the snapshot in memory.

    Operations complete inline and never fail. Nothing survives the process.
    """

    def __init__(self, snapshot: Optional[CacheSnapshot] = None):
        self.snapshot = snapshot

    def delete_cached_feed(self, completion: DeletionCompletion) -> None:
        self.snapshot = None
        completion(None)

    def insert(
        self,
        feed: List[LocalFeedItem],
        timestamp: datetime,
        completion: InsertionCompletion,
    ) -> None:
        self.snapshot = CacheSnapshot(feed=feed, timestamp=timestamp)
        logger.debug(f"Cached {len(self.snapshot.feed)} feed items in memory")
        completion(None)

    def retrieve(self, completion: RetrievalCompletion) -> None:
        if self.snapshot is None:
            completion(Empty())
        else:
            completion(Found(self.snapshot))

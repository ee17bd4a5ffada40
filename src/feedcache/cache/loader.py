"""Cache loader applying save sequencing and freshness policy on a feed store."""

import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union

from feedcache.cache.policy import MAX_CACHE_AGE, is_cache_valid
from feedcache.models import FeedItem, to_local, to_models
from feedcache.storage.base import (
    FeedStore,
    Found,
    RetrievalFailure,
    RetrievalResult,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadSuccess:
    """Load finished; ``feed`` is empty when nothing fresh was cached."""

    feed: List[FeedItem] = field(default_factory=list)


@dataclass(frozen=True)
class LoadFailure:
    """Load failed because the store could not be read."""

    error: Exception


LoadResult = Union[LoadSuccess, LoadFailure]

SaveCompletion = Callable[[Optional[Exception]], None]
LoadCompletion = Callable[[LoadResult], None]
ValidationCompletion = Callable[[], None]


class LocalFeedLoader:
    """Serves the locally cached feed while it is fresh.

    The loader keeps no state besides its store, clock and max age. Every
    request runs as a chain of store completions, each holding only a weak
    reference to the loader: once the loader has been garbage collected, a
    late store completion is dropped and the caller's completion never fires.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from feedcache.storage import InMemoryFeedStore
        >>> loader = LocalFeedLoader(
        ...     InMemoryFeedStore(), current_date=lambda: datetime.now(timezone.utc)
        ... )
        >>> loader.save([], completion=print)
        None
        >>> loader.load(print)
        LoadSuccess(feed=[])
    """

    def __init__(
        self,
        store: FeedStore,
        current_date: Callable[[], datetime],
        max_age: timedelta = MAX_CACHE_AGE,
    ):
        """Initialize cache loader.

        Args:
            store: Store the snapshot is persisted to
            current_date: Clock used for timestamps and freshness checks
            max_age: Maximum age of a snapshot that may still be served
        """
        self.store = store
        self.current_date = current_date
        self.max_age = max_age

    def save(self, feed: List[FeedItem], completion: SaveCompletion) -> None:
        """Replace the cached feed.

        Deletes the cached snapshot, then inserts ``feed`` timestamped with
        the loader's clock. The insert is only attempted once deletion has
        succeeded.

        Args:
            feed: Items to cache, in order
            completion: Called with ``None`` on success, or with the
                deletion or insertion error
        """
        loader_ref = weakref.ref(self)

        def on_deletion(deletion_error: Optional[Exception]) -> None:
            loader = loader_ref()
            if loader is None:
                logger.debug("Feed loader released before deletion completed")
                return

            if deletion_error is not None:
                logger.debug(f"Not caching feed, deletion failed: {deletion_error}")
                completion(deletion_error)
            else:
                loader._cache(feed, completion)

        self.store.delete_cached_feed(on_deletion)

    def _cache(self, feed: List[FeedItem], completion: SaveCompletion) -> None:
        loader_ref = weakref.ref(self)

        def on_insertion(insertion_error: Optional[Exception]) -> None:
            if loader_ref() is None:
                logger.debug("Feed loader released before insertion completed")
                return
            completion(insertion_error)

        self.store.insert(to_local(feed), self.current_date(), on_insertion)

    def load(self, completion: LoadCompletion) -> None:
        """Load the cached feed.

        A stale or missing snapshot loads as an empty feed. Loading never
        modifies the store; see ``validate_cache`` for cleanup.

        Args:
            completion: Called with ``LoadSuccess`` or ``LoadFailure``
        """
        loader_ref = weakref.ref(self)

        def on_retrieval(result: RetrievalResult) -> None:
            loader = loader_ref()
            if loader is None:
                logger.debug("Feed loader released before retrieval completed")
                return

            if isinstance(result, RetrievalFailure):
                completion(LoadFailure(result.error))
            elif isinstance(result, Found) and loader._is_fresh(result):
                logger.debug(f"Feed cache hit ({len(result.snapshot.feed)} items)")
                completion(LoadSuccess(to_models(result.snapshot.feed)))
            else:
                logger.debug("Feed cache miss (empty or stale)")
                completion(LoadSuccess([]))

        self.store.retrieve(on_retrieval)

    def validate_cache(self, completion: Optional[ValidationCompletion] = None) -> None:
        """Delete the cached snapshot if it is stale or unreadable.

        Cleanup is best-effort: a failed deletion is logged and otherwise
        ignored.

        Args:
            completion: Optional callable invoked with no arguments once
                validation is done
        """
        loader_ref = weakref.ref(self)

        def finish() -> None:
            if loader_ref() is None:
                logger.debug("Feed loader released before validation completed")
                return
            if completion is not None:
                completion()

        def on_cleanup(deletion_error: Optional[Exception]) -> None:
            if deletion_error is not None:
                logger.warning(f"Failed to delete invalid feed cache: {deletion_error}")
            finish()

        def on_retrieval(result: RetrievalResult) -> None:
            loader = loader_ref()
            if loader is None:
                logger.debug("Feed loader released before retrieval completed")
                return

            if isinstance(result, RetrievalFailure):
                logger.info(f"Deleting unreadable feed cache: {result.error}")
                loader.store.delete_cached_feed(on_cleanup)
            elif isinstance(result, Found) and not loader._is_fresh(result):
                logger.info("Deleting stale feed cache")
                loader.store.delete_cached_feed(on_cleanup)
            else:
                finish()

        self.store.retrieve(on_retrieval)

    def _is_fresh(self, found: Found) -> bool:
        return is_cache_valid(
            found.snapshot.timestamp, against=self.current_date(), max_age=self.max_age
        )

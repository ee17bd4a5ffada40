"""Store interface shared by every feed cache backend.

A store persists exactly one ``CacheSnapshot`` and reports what is physically
there. It knows nothing about freshness; deciding whether a snapshot may still
be served is the cache loader's job.

Every operation is callback-based: it accepts a ``completion`` callable and
invokes it exactly once, possibly later and on another thread. Errors are
delivered through the completion, never raised from the operation itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from feedcache.models import CacheSnapshot, LocalFeedItem


class StoreError(Exception):
    """Base exception for feed store errors."""

    pass


class StoreReadError(StoreError):
    """Raised when a persisted snapshot cannot be read or decoded."""

    pass


class StoreWriteError(StoreError):
    """Raised when a snapshot cannot be encoded or written."""

    pass


class StoreDeleteError(StoreError):
    """Raised when an existing snapshot cannot be removed."""

    pass


class StoreLockError(StoreError):
    """Raised when unable to acquire the store lock."""

    pass


@dataclass(frozen=True)
class Empty:
    """Nothing is persisted."""


@dataclass(frozen=True)
class Found:
    """A well-formed snapshot is persisted. Its age has not been checked."""

    snapshot: CacheSnapshot


@dataclass(frozen=True)
class RetrievalFailure:
    """Reading or decoding the persisted snapshot failed."""

    error: Exception


RetrievalResult = Union[Empty, Found, RetrievalFailure]

DeletionCompletion = Callable[[Optional[Exception]], None]
InsertionCompletion = Callable[[Optional[Exception]], None]
RetrievalCompletion = Callable[[RetrievalResult], None]


class FeedStore(ABC):
    """Abstract base class for feed cache stores.

    Callers must not run overlapping operations against the same store
    unless the concrete store documents its own locking.

    Examples:
        Minimal implementation backed by an attribute:
        >>> class DictStore(FeedStore):
        ...     def __init__(self):
        ...         self.data = None
        ...
        ...     def delete_cached_feed(self, completion):
        ...         self.data = None
        ...         completion(None)
        ...
        ...     def insert(self, feed, timestamp, completion):
        ...         self.data = CacheSnapshot(feed, timestamp)
        ...         completion(None)
        ...
        ...     def retrieve(self, completion):
        ...         completion(Found(self.data) if self.data else Empty())
    """

    @abstractmethod
    def delete_cached_feed(self, completion: DeletionCompletion) -> None:
        """Remove the persisted snapshot, if any.

        Completes with ``None`` when nothing was persisted.

        Args:
            completion: Called with ``None`` on success or a ``StoreError``
        """
        pass

    @abstractmethod
    def insert(
        self,
        feed: List[LocalFeedItem],
        timestamp: datetime,
        completion: InsertionCompletion,
    ) -> None:
        """Replace whatever is persisted with a new snapshot.

        After a failed insert, retrieval must see either the previous
        snapshot or nothing, never a partially written one.

        Args:
            feed: Items to persist, in order
            timestamp: Time the snapshot was produced
            completion: Called with ``None`` on success or a ``StoreError``
        """
        pass

    @abstractmethod
    def retrieve(self, completion: RetrievalCompletion) -> None:
        """Read the persisted snapshot without side effects.

        Args:
            completion: Called with ``Empty``, ``Found`` or
                ``RetrievalFailure``
        """
        pass

"""Feed item and cache snapshot value types.

``FeedItem`` is the domain-facing type handed to and returned from the cache
loader. ``LocalFeedItem`` mirrors it on the persistence side so that the stored
encoding can change without touching the domain type.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID


@dataclass(frozen=True)
class FeedItem:
    """A single image-bearing item of a feed.

    Attributes:
        id: Unique identifier of the item
        description: Optional free-text description
        location: Optional location label
        url: URL of the item's image
    """

    id: UUID
    description: Optional[str]
    location: Optional[str]
    url: str


@dataclass(frozen=True)
class LocalFeedItem:
    """Persistence-side representation of a ``FeedItem``."""

    id: UUID
    description: Optional[str]
    location: Optional[str]
    url: str


@dataclass(frozen=True)
class CacheSnapshot:
    """The single persisted unit: a whole feed plus the time it was cached.

    Attributes:
        feed: Ordered items of the cached feed
        timestamp: When the snapshot was produced
    """

    feed: Tuple[LocalFeedItem, ...]
    timestamp: datetime

    def __post_init__(self):
        # Accept any iterable but store a tuple so snapshots stay hashable
        # and compare equal regardless of the sequence type passed in.
        if not isinstance(self.feed, tuple):
            object.__setattr__(self, "feed", tuple(self.feed))


def to_local(feed: Iterable[FeedItem]) -> List[LocalFeedItem]:
    """Convert domain items to their persistence form, preserving order."""
    return [
        LocalFeedItem(
            id=item.id,
            description=item.description,
            location=item.location,
            url=item.url,
        )
        for item in feed
    ]


def to_models(local_feed: Iterable[LocalFeedItem]) -> List[FeedItem]:
    """Convert persisted items back to domain items, preserving order."""
    return [
        FeedItem(
            id=item.id,
            description=item.description,
            location=item.location,
            url=item.url,
        )
        for item in local_feed
    ]

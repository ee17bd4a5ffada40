"""File-backed feed store.

The whole snapshot is encoded as JSON and kept in a single file. Writes go to a
temp file first and are renamed over the store file, so a reader only ever
sees the previous snapshot or the new one.
"""

import logging
from concurrent.futures import Executor, Future
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union
from uuid import UUID

import orjson
from filelock import FileLock, Timeout

from feedcache.models import CacheSnapshot, LocalFeedItem
from feedcache.storage.base import (
    DeletionCompletion,
    Empty,
    FeedStore,
    Found,
    InsertionCompletion,
    RetrievalCompletion,
    RetrievalFailure,
    RetrievalResult,
    StoreDeleteError,
    StoreError,
    StoreLockError,
    StoreReadError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)


def encode_snapshot(snapshot: CacheSnapshot) -> bytes:
    """Serialize a snapshot to JSON bytes.

    Args:
        snapshot: Snapshot to encode

    Returns:
        UTF-8 encoded JSON document

    Examples:
        >>> from datetime import datetime, timezone
        >>> encode_snapshot(CacheSnapshot((), datetime(2024, 1, 15, tzinfo=timezone.utc)))
        b'{\\n  "feed": [],\\n  "timestamp": "2024-01-15T00:00:00+00:00"\\n}'
    """
    data = {
        "feed": [
            {
                "id": item.id,
                "description": item.description,
                "location": item.location,
                "url": item.url,
            }
            for item in snapshot.feed
        ],
        "timestamp": snapshot.timestamp,
    }
    return orjson.dumps(data, option=orjson.OPT_INDENT_2)


def decode_snapshot(content: bytes) -> CacheSnapshot:
    """Deserialize a snapshot from JSON bytes.

    Args:
        content: Bytes previously produced by ``encode_snapshot``

    Returns:
        Decoded snapshot

    Raises:
        ValueError: If the content is not valid JSON or a field is malformed
        KeyError: If a required field is missing
        TypeError: If a field has the wrong type
        AttributeError: If an id is not a string
    """
    data: Dict[str, Any] = orjson.loads(content)
    feed = [
        LocalFeedItem(
            id=UUID(raw["id"]),
            description=raw.get("description"),
            location=raw.get("location"),
            url=raw["url"],
        )
        for raw in data["feed"]
    ]
    return CacheSnapshot(feed=feed, timestamp=datetime.fromisoformat(data["timestamp"]))


class FileFeedStore(FeedStore):
    """Feed store persisting one snapshot to a JSON file.

    Inserts and deletes hold a file lock next to the store file, so writers
    from different threads or processes sharing the same path never interleave.
    Reads take no lock and never create files or directories.

    Without an executor, operations complete inline on the calling thread.
    With one, they run and complete on the executor's worker threads.

    Examples:
        >>> store = FileFeedStore('/tmp/feed.store')
        >>> store.retrieve(print)
        Empty()
    """

    def __init__(
        self,
        store_path: Union[str, Path],
        lock_timeout: float = 10.0,
        executor: Optional[Executor] = None,
    ):
        """Initialize file store.

        Args:
            store_path: File the snapshot is written to
            lock_timeout: Seconds to wait for the store lock
            executor: Optional executor to run operations on
        """
        self.store_path = Path(store_path).expanduser()
        self.lock_path = self.store_path.with_name(self.store_path.name + ".lock")
        self.temp_path = self.store_path.with_name(self.store_path.name + ".tmp")
        self.lock_timeout = lock_timeout
        self._executor = executor

    @classmethod
    def from_config(cls, config, executor: Optional[Executor] = None) -> "FileFeedStore":
        """Create a store from a ``CacheConfig``."""
        return cls(config.store_path, lock_timeout=config.lock_timeout, executor=executor)

    def delete_cached_feed(self, completion: DeletionCompletion) -> None:
        self._dispatch(lambda: completion(self._capture_error(self._delete)))

    def insert(
        self,
        feed: List[LocalFeedItem],
        timestamp: datetime,
        completion: InsertionCompletion,
    ) -> None:
        snapshot = CacheSnapshot(feed=feed, timestamp=timestamp)
        self._dispatch(
            lambda: completion(self._capture_error(lambda: self._insert(snapshot)))
        )

    def retrieve(self, completion: RetrievalCompletion) -> None:
        def work():
            try:
                result = self._retrieve()
            except StoreError as e:
                result = RetrievalFailure(e)
            completion(result)

        self._dispatch(work)

    def _dispatch(self, work: Callable[[], None]) -> None:
        if self._executor is None:
            work()
            return

        future = self._executor.submit(work)
        future.add_done_callback(self._log_failed_work)

    @staticmethod
    def _log_failed_work(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Feed store completion raised: {error!r}", exc_info=error)

    @staticmethod
    def _capture_error(operation: Callable[[], None]) -> Optional[StoreError]:
        try:
            operation()
        except StoreError as e:
            return e
        return None

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the store lock for the duration of the block.

        The store directory must already exist.

        Raises:
            StoreLockError: If the lock file cannot be opened or the lock
                is not acquired in time
        """
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)
        try:
            lock.acquire()
        except Timeout as e:
            raise StoreLockError(
                f"Timeout acquiring lock for {self.store_path} after "
                f"{self.lock_timeout} seconds"
            ) from e
        except OSError as e:
            logger.error(f"Cannot open lock file {self.lock_path}: {e}")
            raise StoreLockError(f"Cannot open lock file {self.lock_path}: {e}") from e

        try:
            yield
        finally:
            lock.release()

    def _delete(self) -> None:
        if not self.store_path.exists():
            # Nothing persisted; leave the filesystem untouched
            return

        with self._locked():
            try:
                self.store_path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Cannot delete feed cache at {self.store_path}: {e}")
                raise StoreDeleteError(f"Cannot delete feed cache: {e}") from e

        logger.debug(f"Deleted feed cache at {self.store_path}")

    def _insert(self, snapshot: CacheSnapshot) -> None:
        try:
            content = encode_snapshot(snapshot)
        except orjson.JSONEncodeError as e:
            logger.error(f"Cannot encode feed snapshot: {e}")
            raise StoreWriteError(f"Cannot encode feed snapshot: {e}") from e

        try:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create store directory {self.store_path.parent}: {e}")
            raise StoreWriteError(
                f"Cannot create store directory {self.store_path.parent}: {e}"
            ) from e

        with self._locked():
            self._write_atomically(content)

        logger.debug(
            f"Cached {len(snapshot.feed)} feed items at {self.store_path} "
            f"(timestamp {snapshot.timestamp.isoformat()})"
        )

    def _write_atomically(self, content: bytes) -> None:
        """Write content to the temp file, then rename it over the store file.

        Must be called with the store lock held.

        Raises:
            StoreWriteError: If writing or renaming fails
        """
        try:
            with open(self.temp_path, "wb") as f:
                f.write(content)
            self.temp_path.replace(self.store_path)
        except OSError as e:
            logger.error(f"Cannot write feed cache at {self.store_path}: {e}")
            if self.temp_path.exists():
                try:
                    self.temp_path.unlink()
                except OSError as cleanup_error:
                    logger.warning(
                        f"Failed to clean up temp file {self.temp_path}: {cleanup_error}"
                    )
            raise StoreWriteError(f"Cannot write feed cache: {e}") from e

    def _retrieve(self) -> RetrievalResult:
        # Reads take no lock: writes are renamed into place, so the file is
        # always either the previous snapshot or the new one.
        if not self.store_path.exists():
            return Empty()
        try:
            content = self.store_path.read_bytes()
        except FileNotFoundError:
            return Empty()
        except OSError as e:
            logger.error(f"Cannot read feed cache at {self.store_path}: {e}")
            raise StoreReadError(f"Cannot read feed cache: {e}") from e

        try:
            snapshot = decode_snapshot(content)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Corrupted feed cache at {self.store_path}: {e}")
            raise StoreReadError(f"Cannot decode feed cache: {e}") from e

        return Found(snapshot)

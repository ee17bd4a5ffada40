"""Tests for loading and validating the cached feed through LocalFeedLoader."""

import gc
from datetime import timedelta

import pytest

from feed_cache_helpers import (
    FIXED_NOW,
    FeedStoreSpy,
    any_error,
    minus_max_cache_age,
    unique_feed,
)
from feedcache.cache.loader import LoadFailure, LoadSuccess, LocalFeedLoader
from feedcache.models import CacheSnapshot


@pytest.fixture
def store():
    return FeedStoreSpy()


@pytest.fixture
def loader(store):
    return LocalFeedLoader(store, current_date=lambda: FIXED_NOW)


def load_with(loader, complete):
    received = []
    loader.load(received.append)
    complete()
    return received


class TestLoad:
    """Test load results for each retrieval outcome."""

    def test_load_requests_cache_retrieval(self, store, loader):
        """Test that load retrieves from the store."""
        loader.load(lambda result: None)

        assert store.received_messages == [("retrieve",)]

    def test_load_fails_on_retrieval_error(self, store, loader):
        """Test that retrieval errors are delivered verbatim."""
        retrieval_error = any_error()

        received = load_with(loader, lambda: store.complete_retrieval(retrieval_error))

        assert received == [LoadFailure(retrieval_error)]

    def test_load_delivers_no_items_on_empty_cache(self, store, loader):
        """Test that an empty cache loads as an empty feed."""
        received = load_with(loader, store.complete_retrieval_with_empty_cache)

        assert received == [LoadSuccess([])]

    def test_load_delivers_items_on_non_expired_cache(self, store, loader):
        """Test that a snapshot one second short of max age is served."""
        models, local = unique_feed()
        timestamp = minus_max_cache_age(FIXED_NOW) + timedelta(seconds=1)

        received = load_with(
            loader, lambda: store.complete_retrieval_with(CacheSnapshot(local, timestamp))
        )

        assert received == [LoadSuccess(models)]

    def test_load_delivers_no_items_on_cache_expiration(self, store, loader):
        """Test that a snapshot exactly max age old is not served."""
        _, local = unique_feed()
        timestamp = minus_max_cache_age(FIXED_NOW)

        received = load_with(
            loader, lambda: store.complete_retrieval_with(CacheSnapshot(local, timestamp))
        )

        assert received == [LoadSuccess([])]

    def test_load_delivers_no_items_on_expired_cache(self, store, loader):
        """Test that a snapshot older than max age is not served."""
        _, local = unique_feed()
        timestamp = minus_max_cache_age(FIXED_NOW) - timedelta(seconds=1)

        received = load_with(
            loader, lambda: store.complete_retrieval_with(CacheSnapshot(local, timestamp))
        )

        assert received == [LoadSuccess([])]

    def test_load_respects_custom_max_age(self, store):
        """Test that max_age overrides the default window."""
        loader = LocalFeedLoader(
            store, current_date=lambda: FIXED_NOW, max_age=timedelta(hours=1)
        )
        _, local = unique_feed()

        received = load_with(
            loader,
            lambda: store.complete_retrieval_with(
                CacheSnapshot(local, FIXED_NOW - timedelta(hours=1))
            ),
        )

        assert received == [LoadSuccess([])]


class TestLoadHasNoSideEffects:
    """Test that load only ever retrieves."""

    def test_no_side_effects_on_retrieval_error(self, store, loader):
        load_with(loader, lambda: store.complete_retrieval(any_error()))

        assert store.received_messages == [("retrieve",)]

    def test_no_side_effects_on_empty_cache(self, store, loader):
        load_with(loader, store.complete_retrieval_with_empty_cache)

        assert store.received_messages == [("retrieve",)]

    def test_no_side_effects_on_expired_cache(self, store, loader):
        _, local = unique_feed()
        timestamp = minus_max_cache_age(FIXED_NOW) - timedelta(seconds=1)

        load_with(
            loader, lambda: store.complete_retrieval_with(CacheSnapshot(local, timestamp))
        )

        assert store.received_messages == [("retrieve",)]

    def test_no_result_after_loader_released(self, store):
        """Test that a late retrieval is dropped once the loader is gone."""
        loader = LocalFeedLoader(store, current_date=lambda: FIXED_NOW)
        received = []

        loader.load(received.append)
        del loader
        gc.collect()
        store.complete_retrieval_with_empty_cache()

        assert received == []


class TestValidateCache:
    """Test best-effort cleanup of stale or unreadable caches."""

    def test_validate_deletes_cache_on_retrieval_error(self, store, loader):
        loader.validate_cache()
        store.complete_retrieval(any_error())

        assert store.received_messages == [("retrieve",), ("delete_cached_feed",)]

    def test_validate_does_not_delete_empty_cache(self, store, loader):
        loader.validate_cache()
        store.complete_retrieval_with_empty_cache()

        assert store.received_messages == [("retrieve",)]

    def test_validate_does_not_delete_non_expired_cache(self, store, loader):
        _, local = unique_feed()
        timestamp = minus_max_cache_age(FIXED_NOW) + timedelta(seconds=1)

        loader.validate_cache()
        store.complete_retrieval_with(CacheSnapshot(local, timestamp))

        assert store.received_messages == [("retrieve",)]

    def test_validate_deletes_cache_on_expiration(self, store, loader):
        _, local = unique_feed()

        loader.validate_cache()
        store.complete_retrieval_with(CacheSnapshot(local, minus_max_cache_age(FIXED_NOW)))

        assert store.received_messages == [("retrieve",), ("delete_cached_feed",)]

    def test_validate_completes_after_cleanup(self, store, loader):
        """Test that completion waits for the deletion to finish."""
        done = []

        loader.validate_cache(lambda: done.append(True))
        store.complete_retrieval(any_error())
        assert done == []

        store.complete_deletion_successfully()
        assert done == [True]

    def test_validate_ignores_deletion_error(self, store, loader):
        """Test that a failed cleanup still completes without an error."""
        done = []

        loader.validate_cache(lambda: done.append(True))
        store.complete_retrieval(any_error())
        store.complete_deletion(any_error())

        assert done == [True]

    def test_validate_completes_without_cleanup_on_fresh_cache(self, store, loader):
        _, local = unique_feed()
        done = []

        loader.validate_cache(lambda: done.append(True))
        store.complete_retrieval_with(CacheSnapshot(local, FIXED_NOW))

        assert done == [True]

    def test_validate_does_not_delete_after_loader_released(self, store):
        """Test that a late retrieval does not trigger cleanup."""
        loader = LocalFeedLoader(store, current_date=lambda: FIXED_NOW)
        done = []

        loader.validate_cache(lambda: done.append(True))
        del loader
        gc.collect()
        store.complete_retrieval(any_error())

        assert store.received_messages == [("retrieve",)]
        assert done == []

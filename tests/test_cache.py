"""Tests for the in-memory TTL result cache."""

from __future__ import annotations

import pytest

from pagefeed.feed.models import FeedDocument, FeedItem
from pagefeed.service.cache import ResultCache, cache_key


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def _doc(title: str = "Feed") -> FeedDocument:
    item = FeedItem(id="0", url="https://a.com/", title="x", date_published="2024-01-01T00:00:00Z")
    return FeedDocument(title=title, home_page_url="https://a.com/", items=[item])


class TestResultCache:
    def test_cache_key_format(self) -> None:
        assert cache_key("auto", "https://a.com/") == "analyze:auto:https://a.com/"

    def test_get_missing_returns_none(self) -> None:
        assert ResultCache().get("nope") is None

    def test_put_then_get_within_ttl(self) -> None:
        clock = FakeClock()
        cache = ResultCache(ttl=300, clock=clock)
        doc = _doc()
        cache.put("k", doc)

        clock.now = 299.9
        assert cache.get("k") is doc

    def test_expired_entry_is_never_returned_and_is_dropped(self) -> None:
        clock = FakeClock()
        cache = ResultCache(ttl=300, clock=clock)
        cache.put("k", _doc())

        clock.now = 300.0
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_per_entry_ttl_override(self) -> None:
        clock = FakeClock()
        cache = ResultCache(ttl=300, clock=clock)
        cache.put("short", _doc(), ttl=10)
        cache.put("long", _doc())

        clock.now = 11
        assert cache.get("short") is None
        assert cache.get("long") is not None

    def test_sweep_evicts_expired_entries(self) -> None:
        clock = FakeClock()
        cache = ResultCache(ttl=100, clock=clock)
        cache.put("a", _doc())
        clock.now = 50
        cache.put("b", _doc())

        clock.now = 120
        assert cache.sweep() == 1
        assert len(cache) == 1
        assert cache.get("b") is not None

    def test_clear(self) -> None:
        cache = ResultCache()
        cache.put("a", _doc())
        cache.clear()
        assert len(cache) == 0

    def test_cached_document_cannot_be_mutated_through_to_dict(self) -> None:
        cache = ResultCache()
        cache.put("a", _doc())

        served = cache.get("a").to_dict()
        served["title"] = "changed"
        served["items"][0]["tags"].append("x")

        again = cache.get("a").to_dict()
        assert again["title"] == "Feed"
        assert again["items"][0]["tags"] == ["default"]

    def test_invalid_ttl(self) -> None:
        with pytest.raises(ValueError):
            ResultCache(ttl=0)

"""In-memory TTL cache for finished feed documents.

Expired entries are dropped lazily by the ``get`` that finds them and eagerly
by :meth:`ResultCache.sweep`, which the HTTP app calls on a timer.  Either
way an entry older than its TTL is never returned.

Concurrent misses for the same key are not coalesced: both callers build
and the last ``put`` wins.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from pagefeed.feed.models import FeedDocument


def cache_key(mode: str, url: str) -> str:
    return f"analyze:{mode}:{url}"


class ResultCache:
    def __init__(
        self,
        ttl: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be > 0")
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (expires_at, document)
        self._entries: dict[str, tuple[float, FeedDocument]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> FeedDocument | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, document = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return document

    def put(self, key: str, value: FeedDocument, ttl: float | None = None) -> None:
        expires_at = self._clock() + (self._ttl if ttl is None else ttl)
        with self._lock:
            self._entries[key] = (expires_at, value)

    def sweep(self) -> int:
        """Delete every expired entry; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

"""Per-client fixed-window rate limiting."""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class RateWindow:
    count: int
    started_at: float


@dataclass(frozen=True)
class RateDecision:
    """Outcome of one admission check, also used for ``RateLimit-*`` headers."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    def headers(self) -> dict[str, str]:
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(math.ceil(self.reset_after)),
        }
        if not self.allowed:
            headers["Retry-After"] = headers["RateLimit-Reset"]
        return headers


class RateLimiter:
    """Admit at most *limit* requests per client per *window* seconds.

    Pure fixed window: the counter resets once the window has elapsed, with
    no partial decay, so a client can burst across a window boundary.
    """

    def __init__(
        self,
        limit: int = 100,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit <= 0:
            raise ValueError("limit must be > 0")
        if window <= 0:
            raise ValueError("window must be > 0")
        self._limit = limit
        self._window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, RateWindow] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def check(self, client_id: str) -> RateDecision:
        """Count one request from *client_id* and decide whether to admit it."""
        with self._lock:
            now = self._clock()
            window = self._windows.get(client_id)
            if window is None or now > window.started_at + self._window:
                window = RateWindow(count=1, started_at=now)
                self._windows[client_id] = window
            else:
                window.count += 1
            count = window.count
            reset_after = window.started_at + self._window - now

        return RateDecision(
            allowed=count <= self._limit,
            limit=self._limit,
            remaining=max(self._limit - count, 0),
            reset_after=max(reset_after, 0.0),
        )

    def admit(self, client_id: str) -> bool:
        return self.check(client_id).allowed

    def sweep(self) -> int:
        """Forget clients whose window has ended; returns how many."""
        with self._lock:
            now = self._clock()
            stale = [
                client_id
                for client_id, window in self._windows.items()
                if now > window.started_at + self._window
            ]
            for client_id in stale:
                del self._windows[client_id]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

"""Request orchestration for ``/api/analyze``.

Per request::

    RateLimit -> Validate -> CacheLookup -> hit  -> Respond
                                         -> miss -> Fetch -> Extract
                                                 -> Build (heuristic | AI)
                                                 -> CacheStore -> Respond

Cached documents never carry ``generated_at``; it is stamped on every
response, cache hit or not.  Any failure after validation skips the cache
write.  All errors stop here and become the uniform error envelope.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Protocol
from urllib.parse import urlparse

from pagefeed.config import Settings
from pagefeed.errors import PageFeedError, RateLimitError, ValidationError
from pagefeed.feed.ai import AIFeedBuilder
from pagefeed.feed.dates import isoformat_utc, utcnow
from pagefeed.feed.heuristic import build_heuristic_feed
from pagefeed.feed.models import FeedDocument
from pagefeed.scraper.extractor import open_page
from pagefeed.scraper.fetcher import fetch_url
from pagefeed.scraper.models import ExtractedPage, FetchResult
from pagefeed.service.cache import ResultCache, cache_key
from pagefeed.service.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

AUTO_MODE = "auto"

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


class Fetcher(Protocol):
    def __call__(self, url: str, *, timeout: float, user_agent: str) -> FetchResult: ...


@dataclass
class AnalyzeResponse:
    """HTTP-ready outcome: status code, JSON envelope, extra headers."""

    status_code: int
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.body.get("status") == "success"


class AnalyzeOrchestrator:
    def __init__(
        self,
        settings: Settings,
        *,
        cache: ResultCache | None = None,
        limiter: RateLimiter | None = None,
        fetcher: Fetcher = fetch_url,
        ai_builder: AIFeedBuilder | None = None,
    ) -> None:
        self.settings = settings
        # ResultCache and RateLimiter define __len__, so an empty one is falsy.
        if cache is None:
            cache = ResultCache(ttl=settings.cache_ttl)
        if limiter is None:
            limiter = RateLimiter(settings.rate_limit_max, settings.rate_limit_window)
        if ai_builder is None:
            ai_builder = AIFeedBuilder(
                settings.providers,
                timeout=settings.ai_timeout,
                max_content_chars=settings.ai_max_content_chars,
            )
        self.cache = cache
        self.limiter = limiter
        self._fetcher = fetcher
        self._ai_builder = ai_builder
        self._stamp_lock = threading.Lock()
        self._last_stamp: datetime | None = None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def normalize_mode(self, mode: str | None) -> str:
        """Map the ``ai`` parameter to ``"auto"`` or a known provider name."""
        value = (mode or "").strip().lower()
        if not value or value == AUTO_MODE:
            return AUTO_MODE
        if value not in self.settings.providers:
            supported = ",".join([AUTO_MODE, *self.settings.provider_names])
            raise ValidationError(f"Invalid ai parameter, supported: {supported}")
        return value

    @staticmethod
    def validate_url(url: str | None) -> str:
        value = (url or "").strip()
        try:
            netloc = urlparse(value).netloc
        except ValueError as exc:
            raise ValidationError("Invalid URL format") from exc
        if not _URL_RE.match(value) or not netloc:
            raise ValidationError("Invalid URL format")
        return value

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _stamp(self) -> str:
        """Current UTC time, strictly later than any previous stamp."""
        with self._stamp_lock:
            now = utcnow()
            if self._last_stamp is not None and now <= self._last_stamp:
                now = self._last_stamp + timedelta(microseconds=1)
            self._last_stamp = now
        return isoformat_utc(now, timespec="microseconds")

    def _fetch(self, url: str) -> FetchResult:
        return self._fetcher(
            url,
            timeout=self.settings.request_timeout,
            user_agent=self.settings.user_agent,
        )

    def _build(self, mode: str, page: ExtractedPage) -> FeedDocument:
        if mode == AUTO_MODE:
            return build_heuristic_feed(page)
        return self._ai_builder.build(mode, page)

    def analyze(self, mode: str | None, url: str | None) -> dict[str, Any]:
        """Return the feed for *url* plus a fresh ``generated_at``.

        Raises:
            PageFeedError: Any validation, fetch, or build failure.
        """
        mode = self.normalize_mode(mode)
        url = self.validate_url(url)
        logger.info("Processing request: mode=%s url=%s", mode, url)

        key = cache_key(mode, url)
        document = self.cache.get(key)
        if document is not None:
            logger.info("Cache hit for %s", key)
        else:
            raw = self._fetch(url)
            with open_page(raw.html, url) as page:
                document = self._build(mode, page)
            self.cache.put(key, document)

        return {**document.to_dict(), "generated_at": self._stamp()}

    def extract(self, url: str | None) -> dict[str, Any]:
        """Extraction preview: title, main content and detected list items."""
        url = self.validate_url(url)
        raw = self._fetch(url)
        with open_page(raw.html, url) as page:
            document = build_heuristic_feed(page)
            return {
                "title": page.title,
                "url": page.url,
                "main_content": page.main_content,
                "items": [item.to_dict() for item in document.items],
            }

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------
    def _respond(self, client_id: str, action: Callable[[], dict[str, Any]]) -> AnalyzeResponse:
        decision = self.limiter.check(client_id)
        headers = decision.headers()
        try:
            if not decision.allowed:
                raise RateLimitError()
            data = action()
        except PageFeedError as exc:
            logger.warning("Request from %s failed: %s", client_id, exc)
            return AnalyzeResponse(
                status_code=exc.status_code,
                body={"status": "error", "message": str(exc)},
                headers=headers,
            )
        except Exception:
            logger.exception("Unexpected error while processing request from %s", client_id)
            return AnalyzeResponse(
                status_code=500,
                body={"status": "error", "message": "Internal server error"},
                headers=headers,
            )
        return AnalyzeResponse(
            status_code=200,
            body={"status": "success", "data": data},
            headers=headers,
        )

    def handle(self, client_id: str, mode: str | None, url: str | None) -> AnalyzeResponse:
        return self._respond(client_id, lambda: self.analyze(mode, url))

    def handle_extract(self, client_id: str, url: str | None) -> AnalyzeResponse:
        return self._respond(client_id, lambda: self.extract(url))

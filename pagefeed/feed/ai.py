"""AI-backed JSON Feed builder.

The page payload is sent to a chat-completion style endpoint together with a
fixed system instruction (:mod:`pagefeed.feed.prompts`).  Providers answer
with a completion whose first choice's message content is *itself* a JSON
string, so the response is decoded twice::

    response body  --json-->  {"choices": [{"message": {"content": "<str>"}}]}
    content <str>  --json-->  {"version": ..., "title": ..., "items": [...]}

The decoded document is validated with pydantic and normalised (string ids,
absolute URLs, ISO 8601 dates, at most five tags) before it is returned.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, Mapping
from urllib.parse import urljoin

import httpx
import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from pagefeed.config import ProviderConfig
from pagefeed.errors import ConfigError, ParseError, UpstreamError
from pagefeed.feed.dates import normalize_date, utcnow
from pagefeed.feed.models import (
    DEFAULT_DESCRIPTION,
    UNTITLED_ITEM,
    UNTITLED_PAGE,
    FeedDocument,
    FeedItem,
    clean_tags,
    feed_url_for,
)
from pagefeed.feed.prompts import FEED_EXTRACTION_PROMPT, FEED_EXTRACTION_PROMPT_VERSION
from pagefeed.scraper.models import ExtractedPage

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------

class FeedItemPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    url: str = Field(min_length=1)
    title: str
    image: str | None = None
    date_published: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return value.split(",")
        if isinstance(value, list):
            return [str(tag) for tag in value if tag is not None]
        return value


class FeedPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    home_page_url: str
    feed_url: str | None = None
    description: str | None = None
    favicon: str | None = None
    items: list[FeedItemPayload] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------

def build_request(provider: ProviderConfig, page_payload: Mapping[str, Any]) -> dict[str, Any]:
    """Chat-completion request body for *provider*."""
    return {
        "model": provider.model,
        "messages": [
            {"role": "system", "content": FEED_EXTRACTION_PROMPT},
            {"role": "user", "content": json.dumps(page_payload, ensure_ascii=False)},
        ],
        "response_format": {"type": "json_object"},
    }


def decode_completion(body: Any) -> Any:
    """Second decode step: pull the feed JSON out of the first choice."""
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ParseError() from exc

    if not isinstance(content, str):
        raise ParseError()
    match = _FENCE_RE.match(content)
    if match:
        content = match.group(1)
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise ParseError() from exc


def to_feed_document(
    data: Any,
    page: ExtractedPage,
    now: datetime | None = None,
) -> FeedDocument:
    """Validate decoded provider output and normalise it into a document."""
    try:
        payload = FeedPayload.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ParseError() from exc

    now = now or utcnow()
    base = page.base_url or page.url
    try:
        home = urljoin(base, payload.home_page_url) if payload.home_page_url else page.url
        items = [
            FeedItem(
                id=item.id or str(index),
                url=urljoin(base, item.url),
                title=item.title.strip() or UNTITLED_ITEM,
                image=urljoin(base, item.image) if item.image else "",
                date_published=normalize_date(item.date_published, now),
                tags=clean_tags(item.tags),
            )
            for index, item in enumerate(payload.items)
        ]
        favicon = urljoin(base, payload.favicon) if payload.favicon else ""
    except ValueError as exc:
        # malformed URLs in the provider output
        raise ParseError() from exc
    return FeedDocument(
        title=payload.title.strip() or page.title or UNTITLED_PAGE,
        home_page_url=home,
        feed_url=payload.feed_url or feed_url_for(home),
        description=payload.description or DEFAULT_DESCRIPTION,
        favicon=favicon,
        items=items,
    )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class AIFeedBuilder:
    """Delegates feed structuring to a configured chat-completion provider."""

    def __init__(
        self,
        providers: Mapping[str, ProviderConfig],
        *,
        timeout: float = 60.0,
        max_content_chars: int = 0,
    ) -> None:
        self._providers = dict(providers)
        self._timeout = timeout
        self._max_content_chars = max_content_chars

    def provider(self, name: str) -> ProviderConfig:
        """Return the usable provider called *name*.

        Raises:
            ConfigError: If *name* is unknown or has no API key.
        """
        provider = self._providers.get(name)
        if provider is None:
            raise ConfigError(f"Unknown AI provider: {name}")
        if not provider.has_credential:
            raise ConfigError(f"No API key configured for AI provider {name}")
        return provider

    def _complete(self, provider: ProviderConfig, body: dict[str, Any]) -> Any:
        """POST *body* and return the decoded response JSON (first decode)."""
        logger.info(
            "Calling AI provider %s (model=%s, prompt v%s)",
            provider.name,
            provider.model,
            FEED_EXTRACTION_PROMPT_VERSION,
        )
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(
                    provider.endpoint,
                    json=body,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {provider.api_key}",
                    },
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise UpstreamError(
                f"AI provider {provider.name} returned {status} {exc.response.reason_phrase}".rstrip()
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise UpstreamError(f"AI provider {provider.name} request failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ParseError() from exc

    def build(self, provider_name: str, page: ExtractedPage) -> FeedDocument:
        """Build a feed for *page* with the provider called *provider_name*.

        Raises:
            ConfigError: Provider unknown or missing its credential.
            UpstreamError: The provider call failed or returned non-2xx.
            ParseError: The response is not a decodable, valid feed.
        """
        provider = self.provider(provider_name)
        body = build_request(provider, page.to_payload(self._max_content_chars))
        data = decode_completion(self._complete(provider, body))
        return to_feed_document(data, page)

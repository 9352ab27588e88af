"""JSON Feed (v1.1) document model.

These are plain dataclasses; :meth:`FeedDocument.to_dict` produces the wire
shape.  A new dict is built on every call so a cached document can be served
many times without callers being able to mutate it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

JSONFEED_VERSION = "https://jsonfeed.org/version/1.1"

MAX_TAGS = 5

UNTITLED_ITEM = "Untitled entry"
UNTITLED_PAGE = "Untitled page"
DEFAULT_DESCRIPTION = "Automatically extracted web page content"
DEFAULT_TAG = "default"


@dataclass
class FeedItem:
    id: str
    url: str
    title: str
    date_published: str
    image: str = ""
    tags: list[str] = field(default_factory=lambda: [DEFAULT_TAG])

    def __post_init__(self) -> None:
        self.tags = list(self.tags[:MAX_TAGS]) or [DEFAULT_TAG]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "image": self.image,
            "date_published": self.date_published,
            "tags": list(self.tags),
        }


@dataclass
class FeedDocument:
    title: str
    home_page_url: str
    items: list[FeedItem]
    feed_url: str = ""
    description: str = DEFAULT_DESCRIPTION
    favicon: str = ""
    version: str = JSONFEED_VERSION

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("a feed document needs at least one item")
        if not self.feed_url:
            self.feed_url = feed_url_for(self.home_page_url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "title": self.title,
            "home_page_url": self.home_page_url,
            "feed_url": self.feed_url,
            "description": self.description,
            "favicon": self.favicon,
            "items": [item.to_dict() for item in self.items],
        }


def feed_url_for(home_page_url: str) -> str:
    """Naming convention only; the result is not a served endpoint."""
    return f"{home_page_url}/feed"


def clean_tags(values: list[str]) -> list[str]:
    """Trim, drop blanks and duplicates, cap at :data:`MAX_TAGS`."""
    tags: list[str] = []
    for value in values:
        tag = value.strip()
        if tag and tag not in tags:
            tags.append(tag)
        if len(tags) >= MAX_TAGS:
            break
    return tags or [DEFAULT_TAG]

"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup


@dataclass
class FetchResult:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int
    content_type: str = ""


@dataclass
class ExtractedPage:
    """Main content of a parsed page plus the live DOM it was taken from.

    ``dom`` is shared by the feed builders within one request and must be
    treated as read-only.  It is released when the surrounding
    :func:`~pagefeed.scraper.extractor.open_page` block exits.
    """

    title: str
    url: str
    main_content: str
    base_url: str = ""
    dom: BeautifulSoup | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.base_url:
            self.base_url = self.url

    def to_payload(self, max_content_chars: int = 0) -> dict[str, Any]:
        """JSON-serialisable view of the page sent to AI providers."""
        content = self.main_content
        if max_content_chars > 0:
            content = content[:max_content_chars]
        return {"title": self.title, "url": self.url, "content": content}

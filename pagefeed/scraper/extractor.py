"""Content extraction: turns fetched HTML into an :class:`ExtractedPage`."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from pagefeed.scraper.models import ExtractedPage

logger = logging.getLogger(__name__)

# Evaluated in order; the first element with non-blank content wins.
MAIN_CONTENT_SELECTORS: tuple[str, ...] = (
    "#article-body",
    ".article-list",
    ".post-content",
    ".entry-list",
    "main",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _extract_title(soup: BeautifulSoup) -> str:
    """Return the trimmed text of the ``<title>`` tag, or empty string."""
    title = soup.find("title")
    if title is None:
        return ""
    return title.get_text().strip()


def _base_url(soup: BeautifulSoup, url: str) -> str:
    """Return the URL relative references resolve against.

    Honours a ``<base href>`` element; otherwise the page URL itself.
    """
    base = soup.find("base", href=True)
    if isinstance(base, Tag):
        href = str(base["href"]).strip()
        if href:
            try:
                return urljoin(url, href)
            except ValueError:
                logger.debug("Ignoring malformed <base href=%r> on %s", href, url)
    return url


def _main_content(soup: BeautifulSoup) -> str:
    """Inner HTML of the first non-empty main-content candidate."""
    for selector in MAIN_CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        inner = element.decode_contents()
        if inner.strip():
            logger.debug("Main content matched %r", selector)
            return inner
    if soup.body is not None:
        return soup.body.decode_contents()
    return ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_page(html: str, url: str) -> ExtractedPage:
    """Parse *html* once and return the page with its live DOM attached.

    Main content is chosen by the selector cascade in
    :data:`MAIN_CONTENT_SELECTORS`, falling back to the whole ``<body>``.
    """
    soup = BeautifulSoup(html, "html.parser")
    return ExtractedPage(
        title=_extract_title(soup),
        url=url,
        base_url=_base_url(soup, url),
        main_content=_main_content(soup),
        dom=soup,
    )


@contextmanager
def open_page(html: str, url: str) -> Iterator[ExtractedPage]:
    """Request-scoped variant of :func:`extract_page`.

    The DOM is decomposed when the block exits so it can never be retained
    past the request that parsed it.
    """
    page = extract_page(html, url)
    try:
        yield page
    finally:
        if page.dom is not None:
            page.dom.decompose()
            page.dom = None

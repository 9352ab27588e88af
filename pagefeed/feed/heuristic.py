"""Heuristic JSON Feed builder.

Turns the DOM of an :class:`~pagefeed.scraper.models.ExtractedPage` into a
:class:`~pagefeed.feed.models.FeedDocument` without any network I/O:

1. Try the list-item selectors in :data:`LIST_ITEM_SELECTORS` in order.  The
   first selector with at least one match is used and the rest are skipped.
2. Map every matched element to a :class:`FeedItem` (title, link, image,
   date, tags), using page-level ``<meta>`` data as fallback.
3. When nothing matches, describe the whole page as a single item.

Relative links and images are resolved against the page's base URL.
"""

from __future__ import annotations

import logging
from datetime import datetime
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

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
from pagefeed.scraper.models import ExtractedPage

logger = logging.getLogger(__name__)

LIST_ITEM_SELECTORS: tuple[str, ...] = (
    "main article",
    "ul.articles li",
    "ol.posts li",
    ".article-list .item",
    ".article-list article",
    ".post-list .post",
    ".entry-list .entry",
    ".posts .post",
    "section.blog-list article",
    "div.news-list li",
    ".post-item",
    'div[class*="article"]',
    'div[class*="post"]',
    ".topic-item",
    'div[class*="topic"]',
)

_ITEM_TITLE_SELECTOR = "h2, h3, .post-title, .entry-title"
_ITEM_DATE_SELECTOR = ".date, .post-time"
_ITEM_TAG_SELECTOR = ".tags a, .tag, .categories a, .category, .keywords a, .keyword a"
_PAGE_DATE_META = (
    'meta[property="og:published_time"]',
    'meta[property="article:published_time"]',
    'meta[name="twitter:date"]',
)


# ---------------------------------------------------------------------------
# Page-level lookups
# ---------------------------------------------------------------------------

def _attr(element: Tag | None, name: str) -> str:
    if element is None:
        return ""
    value = element.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _meta(soup: BeautifulSoup, selector: str) -> str:
    return _attr(soup.select_one(selector), "content")


def _resolve(base_url: str, ref: str, fallback: str = "") -> str:
    """Absolute form of *ref*; empty or malformed refs give *fallback*."""
    if not ref:
        return fallback
    try:
        return urljoin(base_url, ref)
    except ValueError:
        logger.debug("Unresolvable reference %r on %s", ref, base_url)
        return fallback


def _page_date(soup: BeautifulSoup) -> str:
    for selector in _PAGE_DATE_META:
        value = _meta(soup, selector)
        if value:
            return value
    return ""


def find_list_items(soup: BeautifulSoup) -> list[Tag]:
    """Elements matched by the first list-item selector that matches anything."""
    for selector in LIST_ITEM_SELECTORS:
        matches = soup.select(selector)
        if matches:
            logger.debug("List items matched %r (%d)", selector, len(matches))
            return matches
    return []


# ---------------------------------------------------------------------------
# Item construction
# ---------------------------------------------------------------------------

def _item_title(element: Tag) -> str:
    heading = element.select_one(_ITEM_TITLE_SELECTOR)
    if heading is not None:
        text = heading.get_text(" ", strip=True)
        if text:
            return text
    return UNTITLED_ITEM


def _item_date(element: Tag, page_date: str, now: datetime) -> str:
    raw = ""
    date_el = element.select_one(_ITEM_DATE_SELECTOR)
    if date_el is not None:
        raw = date_el.get_text(" ", strip=True)
    if not raw:
        raw = _attr(element.select_one("time[datetime]"), "datetime")
    return normalize_date(raw or page_date, now)


def _item_tags(element: Tag) -> list[str]:
    return clean_tags([el.get_text(" ", strip=True) for el in element.select(_ITEM_TAG_SELECTOR)])


def _list_item(
    index: int,
    element: Tag,
    page: ExtractedPage,
    soup: BeautifulSoup,
    now: datetime,
) -> FeedItem:
    href = (
        _attr(element.select_one("a[href]"), "href")
        or _attr(soup.select_one('link[rel~="canonical"]'), "href")
        or page.url
    )
    image = _attr(element.select_one("img[src]"), "src") or _meta(soup, 'meta[property="og:image"]')
    return FeedItem(
        id=str(index),
        url=_resolve(page.base_url, href, fallback=page.url),
        title=_item_title(element),
        image=_resolve(page.base_url, image),
        date_published=_item_date(element, _page_date(soup), now),
        tags=_item_tags(element),
    )


def _page_item(page: ExtractedPage, soup: BeautifulSoup, now: datetime) -> FeedItem:
    """Synthetic single item describing the whole page."""
    image = _meta(soup, 'meta[property="og:image"]') or _attr(soup.select_one("img[src]"), "src")
    keywords = _meta(soup, 'meta[name="keywords"]')
    return FeedItem(
        id="0",
        url=page.url,
        title=page.title or UNTITLED_PAGE,
        image=_resolve(page.base_url, image),
        date_published=normalize_date(None, now),
        tags=clean_tags(keywords.split(",")),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_heuristic_feed(page: ExtractedPage, now: datetime | None = None) -> FeedDocument:
    """Build a JSON Feed from *page* using list-pattern detection.

    Args:
        page: An extracted page whose ``dom`` is still open.
        now: Timestamp used for items without a parseable date.  Defaults to
            the current UTC time.

    Returns:
        A feed with one item per detected list element, or a single
        synthetic item when no list pattern matched.
    """
    if page.dom is None:
        raise ValueError("page DOM has already been released")
    soup = page.dom
    now = now or utcnow()

    elements = find_list_items(soup)
    if elements:
        items = [_list_item(i, el, page, soup, now) for i, el in enumerate(elements)]
    else:
        logger.debug("No list pattern found on %s; using a single page item", page.url)
        items = [_page_item(page, soup, now)]

    return FeedDocument(
        title=page.title or UNTITLED_PAGE,
        home_page_url=page.url,
        feed_url=feed_url_for(page.url),
        description=_meta(soup, 'meta[name="description"]') or DEFAULT_DESCRIPTION,
        favicon=_resolve(page.base_url, _attr(soup.select_one('link[rel~="icon"]'), "href")),
        items=items,
    )

"""Tests for the heuristic JSON Feed builder.

All tests run against inline HTML; ``now`` is pinned so date fallbacks are
deterministic.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from pagefeed.feed.heuristic import LIST_ITEM_SELECTORS, build_heuristic_feed, find_list_items
from pagefeed.feed.models import (
    DEFAULT_DESCRIPTION,
    DEFAULT_TAG,
    JSONFEED_VERSION,
    MAX_TAGS,
    UNTITLED_ITEM,
    UNTITLED_PAGE,
)
from pagefeed.scraper.extractor import extract_page, open_page

_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
_NOW_ISO = "2024-05-01T12:00:00Z"


def _build(html: str, url: str = "https://blog.example.com/"):
    return build_heuristic_feed(extract_page(html, url), now=_NOW)


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_THREE_POSTS = """\
<html>
<head>
  <title>Example Blog</title>
  <meta name="description" content="Notes about things.">
  <link rel="icon" href="/favicon.ico">
</head>
<body>
  <div class="container">
    <div class="post">
      <h2>First post</h2>
      <a href="/posts/1">Read</a>
      <span class="date">2024-01-15</span>
      <div class="tags"><a>python</a><a>web</a></div>
    </div>
    <div class="post">
      <h2>Second post</h2>
      <a href="/posts/2">Read</a>
    </div>
    <div class="post">
      <h3>Third post</h3>
      <a href="https://other.example.org/3">Read</a>
    </div>
  </div>
</body>
</html>
"""

_NO_LIST = """\
<html>
<head>
  <title>About us</title>
  <meta name="keywords" content="company, team , ,history,values,mission,extra">
  <meta property="og:image" content="/img/cover.png">
</head>
<body><p>We make things.</p><img src="/img/inline.png"></body>
</html>
"""


# ---------------------------------------------------------------------------
# List detection
# ---------------------------------------------------------------------------

class TestListDetection:
    def test_three_post_divs_give_three_items_in_order(self) -> None:
        feed = _build(_THREE_POSTS)

        assert [item.id for item in feed.items] == ["0", "1", "2"]
        assert [item.title for item in feed.items] == ["First post", "Second post", "Third post"]

    def test_first_matching_selector_wins(self) -> None:
        html = """\
<html><body>
  <main><article><h2>Main article</h2></article></main>
  <div class="post"><h2>Post div</h2></div>
  <div class="post"><h2>Post div 2</h2></div>
</body></html>
"""
        feed = _build(html)
        assert [item.title for item in feed.items] == ["Main article"]

    def test_article_list_items(self) -> None:
        html = """\
<html><body><ul class="articles">
  <li><a href="a.html">A</a><h3>Alpha</h3></li>
  <li><a href="b.html">B</a><h3>Beta</h3></li>
</ul></body></html>
"""
        feed = _build(html, "https://a.com/list/")
        assert [item.url for item in feed.items] == [
            "https://a.com/list/a.html",
            "https://a.com/list/b.html",
        ]

    def test_find_list_items_empty_when_nothing_matches(self) -> None:
        with open_page(_NO_LIST, "https://a.com/") as page:
            assert find_list_items(page.dom) == []

    def test_selector_priority_starts_with_main_article(self) -> None:
        assert LIST_ITEM_SELECTORS[0] == "main article"


# ---------------------------------------------------------------------------
# Item fields
# ---------------------------------------------------------------------------

class TestItemFields:
    def test_relative_urls_resolved_against_base(self) -> None:
        html = """\
<html><body><div class="post">
  <h2>Relative</h2>
  <a href="post-1.html">Read</a>
  <img src="../y.jpg">
</div></body></html>
"""
        feed = _build(html, "https://a.com/x/")
        item = feed.items[0]
        assert item.url == "https://a.com/x/post-1.html"
        assert item.image == "https://a.com/y.jpg"

    def test_base_element_changes_resolution(self) -> None:
        html = """\
<html><head><base href="https://cdn.example.net/assets/"></head>
<body><div class="post"><h2>T</h2><a href="p">x</a><img src="i.png"></div></body></html>
"""
        item = _build(html, "https://a.com/x/").items[0]
        assert item.url == "https://cdn.example.net/assets/p"
        assert item.image == "https://cdn.example.net/assets/i.png"

    def test_url_falls_back_to_canonical_then_page(self) -> None:
        with_canonical = """\
<html><head><link rel="canonical" href="/canonical"></head>
<body><div class="post"><h2>No link</h2></div></body></html>
"""
        without = "<html><body><div class='post'><h2>No link</h2></div></body></html>"

        assert _build(with_canonical, "https://a.com/x/").items[0].url == "https://a.com/canonical"
        assert _build(without, "https://a.com/x/").items[0].url == "https://a.com/x/"

    def test_malformed_href_does_not_sink_the_feed(self) -> None:
        html = """\
<html><body>
  <div class="post"><h2>Broken</h2><a href="http://[oops/">x</a><img src="http://[bad/i.png"></div>
  <div class="post"><h2>Fine</h2><a href="/ok">x</a></div>
</body></html>
"""
        broken, fine = _build(html, "https://a.com/x/").items

        assert broken.url == "https://a.com/x/"
        assert broken.image == ""
        assert fine.url == "https://a.com/ok"

    def test_missing_image_is_empty_not_page_url(self) -> None:
        item = _build(_THREE_POSTS).items[1]
        assert item.image == ""

    def test_image_falls_back_to_og_image(self) -> None:
        html = """\
<html><head><meta property="og:image" content="/og.png"></head>
<body><div class="post"><h2>T</h2></div></body></html>
"""
        assert _build(html, "https://a.com/").items[0].image == "https://a.com/og.png"

    def test_missing_title_uses_placeholder(self) -> None:
        html = "<html><body><div class='post'><p>No heading</p></div></body></html>"
        assert _build(html).items[0].title == UNTITLED_ITEM

    def test_item_date_parsed_to_iso(self) -> None:
        item = _build(_THREE_POSTS).items[0]
        assert item.date_published == "2024-01-15T00:00:00Z"

    @pytest.mark.parametrize(
        "meta",
        [
            'property="og:published_time"',
            'property="article:published_time"',
            'name="twitter:date"',
        ],
    )
    def test_item_without_date_uses_page_meta(self, meta: str) -> None:
        html = f"""\
<html><head><meta {meta} content="2023-03-04T05:06:07Z"></head>
<body><div class="post"><h2>T</h2></div></body></html>
"""
        assert _build(html).items[0].date_published == "2023-03-04T05:06:07Z"

    def test_page_meta_priority(self) -> None:
        html = """\
<html><head>
<meta name="twitter:date" content="2020-01-01T00:00:00Z">
<meta property="article:published_time" content="2021-01-01T00:00:00Z">
</head><body><div class="post"><h2>T</h2></div></body></html>
"""
        assert _build(html).items[0].date_published == "2021-01-01T00:00:00Z"

    def test_out_of_range_date_falls_back_to_now(self) -> None:
        html = """\
<html><body><div class="post"><h2>T</h2>
<span class="date">0001-01-01T00:00:00+05:00</span></div></body></html>
"""
        assert _build(html).items[0].date_published == _NOW_ISO

    def test_time_element_datetime_attribute(self) -> None:
        html = """\
<html><body><div class="post"><h2>T</h2>
<time datetime="2022-12-31T23:00:00+01:00">New Year's Eve</time></div></body></html>
"""
        assert _build(html).items[0].date_published == "2022-12-31T22:00:00Z"

    def test_unparseable_date_falls_back_to_now(self) -> None:
        html = "<html><body><div class='post'><h2>T</h2><span class='date'>???</span></div></body></html>"
        assert _build(html).items[0].date_published == _NOW_ISO

    def test_relative_date_is_resolved(self) -> None:
        html = "<html><body><div class='post'><h2>T</h2><span class='post-time'>2 days ago</span></div></body></html>"
        published = _build(html).items[0].date_published
        assert published != _NOW_ISO
        assert published.endswith("Z")

    def test_tags_collected(self) -> None:
        assert _build(_THREE_POSTS).items[0].tags == ["python", "web"]

    def test_tags_capped_at_five(self) -> None:
        links = "".join(f"<a>tag{i}</a>" for i in range(8))
        html = f"<html><body><div class='post'><h2>T</h2><div class='tags'>{links}</div></div></body></html>"
        tags = _build(html).items[0].tags
        assert len(tags) == MAX_TAGS
        assert tags == ["tag0", "tag1", "tag2", "tag3", "tag4"]

    def test_missing_tags_use_placeholder(self) -> None:
        assert _build(_THREE_POSTS).items[1].tags == [DEFAULT_TAG]


# ---------------------------------------------------------------------------
# Synthetic single item
# ---------------------------------------------------------------------------

class TestSyntheticItem:
    def test_single_item_when_no_list(self) -> None:
        feed = _build(_NO_LIST, "https://a.com/about")
        assert len(feed.items) == 1

        item = feed.items[0]
        assert item.id == "0"
        assert item.url == "https://a.com/about"
        assert item.title == "About us"
        assert item.image == "https://a.com/img/cover.png"
        assert item.date_published == _NOW_ISO

    def test_keywords_become_tags(self) -> None:
        tags = _build(_NO_LIST).items[0].tags
        assert tags == ["company", "team", "history", "values", "mission"]

    def test_image_falls_back_to_first_img(self) -> None:
        html = "<html><head><title>T</title></head><body><img src='pic.jpg'></body></html>"
        assert _build(html, "https://a.com/x/").items[0].image == "https://a.com/x/pic.jpg"

    @pytest.mark.parametrize("html", ["", "<html><body></body></html>"])
    def test_empty_page_still_yields_one_item(self, html: str) -> None:
        feed = _build(html)
        assert len(feed.items) == 1
        assert feed.items[0].title == UNTITLED_PAGE
        assert feed.items[0].tags == [DEFAULT_TAG]
        assert feed.items[0].image == ""


# ---------------------------------------------------------------------------
# Feed-level fields
# ---------------------------------------------------------------------------

class TestFeedFields:
    def test_feed_metadata(self) -> None:
        feed = _build(_THREE_POSTS, "https://blog.example.com/")

        assert feed.version == JSONFEED_VERSION
        assert feed.title == "Example Blog"
        assert feed.home_page_url == "https://blog.example.com/"
        assert feed.feed_url == "https://blog.example.com//feed"
        assert feed.description == "Notes about things."
        assert feed.favicon == "https://blog.example.com/favicon.ico"

    def test_fallbacks(self) -> None:
        feed = _build("<html><body><p>x</p></body></html>", "https://a.com")

        assert feed.title == UNTITLED_PAGE
        assert feed.feed_url == "https://a.com/feed"
        assert feed.description == DEFAULT_DESCRIPTION
        assert feed.favicon == ""

    def test_serialised_fields_are_never_null(self) -> None:
        data = _build("").to_dict()
        for key in ("version", "title", "home_page_url", "feed_url", "description", "favicon"):
            assert isinstance(data[key], str)
        for item in data["items"]:
            assert all(value is not None for value in item.values())

    def test_released_dom_is_rejected(self) -> None:
        with open_page(_THREE_POSTS, "https://a.com/") as page:
            pass
        with pytest.raises(ValueError):
            build_heuristic_feed(page)

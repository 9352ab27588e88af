"""Scraper package — web fetch & content extraction."""

from pagefeed.scraper.extractor import extract_page, open_page
from pagefeed.scraper.fetcher import fetch_url
from pagefeed.scraper.models import ExtractedPage, FetchResult

__all__ = ["fetch_url", "extract_page", "open_page", "FetchResult", "ExtractedPage"]

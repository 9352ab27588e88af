"""HTTP fetcher for target pages."""

from __future__ import annotations

import logging

import httpx

from pagefeed.errors import NetworkError
from pagefeed.scraper.models import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; WebAnalyzer/1.0)"


def fetch_url(
    url: str,
    *,
    timeout: float = 10.0,
    user_agent: str = DEFAULT_USER_AGENT,
) -> FetchResult:
    """Fetch *url* and return a :class:`FetchResult`.

    Redirects are followed.  The request is abandoned after *timeout*
    seconds.

    Raises:
        NetworkError: On a non-2xx status, a timeout, or any transport
            failure (DNS, connection refused, TLS, ...).
    """
    logger.info("Fetching %s", url)
    try:
        with httpx.Client(
            headers={"User-Agent": user_agent},
            timeout=timeout,
            follow_redirects=True,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
            html = response.text
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        reason = exc.response.reason_phrase
        raise NetworkError(f"Failed to fetch target page: {status} {reason}".rstrip()) from exc
    except httpx.TimeoutException as exc:
        raise NetworkError(f"Failed to fetch target page: timed out after {timeout:g}s") from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise NetworkError(f"Failed to fetch target page: {exc}") from exc

    return FetchResult(
        url=url,
        html=html,
        status_code=response.status_code,
        content_type=response.headers.get("content-type", ""),
    )

"""Error taxonomy for the analyze pipeline.

Every error carries the HTTP status it maps to so the orchestrator can turn
it into the uniform ``{"status": "error", "message": ...}`` envelope without
a lookup table.
"""

from __future__ import annotations


class PageFeedError(Exception):
    """Base class for all errors surfaced to API callers."""

    status_code: int = 500


class ValidationError(PageFeedError):
    """Bad ``ai`` mode or malformed target URL."""

    status_code = 400


class RateLimitError(PageFeedError):
    """The client exceeded its request budget for the current window."""

    status_code = 429

    def __init__(self, message: str = "Too many requests, please try again later") -> None:
        super().__init__(message)


class NetworkError(PageFeedError):
    """The target page could not be fetched (non-2xx, DNS failure, timeout)."""


class ConfigError(PageFeedError):
    """The requested AI provider is unknown or has no credential configured."""


class UpstreamError(PageFeedError):
    """The AI provider call failed at the transport or HTTP level."""


class ParseError(PageFeedError):
    """The AI provider answered, but not with a decodable JSON Feed."""

    def __init__(self, message: str = "AI response parsing failed") -> None:
        super().__init__(message)

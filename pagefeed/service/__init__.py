"""Service layer — rate limiting, result caching and request orchestration."""

from pagefeed.service.cache import ResultCache, cache_key
from pagefeed.service.orchestrator import AUTO_MODE, AnalyzeOrchestrator, AnalyzeResponse
from pagefeed.service.rate_limit import RateDecision, RateLimiter

__all__ = [
    "AUTO_MODE",
    "AnalyzeOrchestrator",
    "AnalyzeResponse",
    "RateDecision",
    "RateLimiter",
    "ResultCache",
    "cache_key",
]

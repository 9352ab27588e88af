"""Feed package — JSON Feed model and the heuristic / AI builders."""

from pagefeed.feed.ai import AIFeedBuilder
from pagefeed.feed.heuristic import build_heuristic_feed
from pagefeed.feed.models import JSONFEED_VERSION, FeedDocument, FeedItem

__all__ = [
    "AIFeedBuilder",
    "build_heuristic_feed",
    "FeedDocument",
    "FeedItem",
    "JSONFEED_VERSION",
]

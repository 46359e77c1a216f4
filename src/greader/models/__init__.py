"""greader records and payload conversion.

Example:
    >>> from greader.models import Feed
    >>> Feed(id="feed/http://example.com/rss").title
    '[No title]'
"""

from greader.models.feed import FEED_PREFIX, Feed, FeedEntry, validate_feed_id

__all__ = [
    "FEED_PREFIX",
    "Feed",
    "FeedEntry",
    "validate_feed_id",
]

"""Feed and FeedEntry records.

Both are immutable and compare by ``id`` only: two Feed values with the same
id are interchangeable whatever their title or unread count.

Example:
    >>> from greader.models.feed import Feed
    >>> a = Feed(id="feed/https://example.com/rss", title="Example", unread_count=3)
    >>> b = Feed(id="feed/https://example.com/rss", title="Other", unread_count=0)
    >>> a == b
    True
    >>> a.url
    'https://example.com/rss'
    >>> str(a)
    'Example (https://example.com/rss)'
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from pydantic import ConfigDict, Field, field_validator

from greader.core.exceptions import ValidationError
from greader.models.base import ReaderModel

FEED_PREFIX = "feed/"
NO_TITLE = "[No title]"


def validate_feed_id(feed_id: Any) -> str:
    """Check that ``feed_id`` has the ``feed/{absolute url}`` format.

    Raises:
        ValidationError: If the prefix is missing or the URL is not absolute.

    Example:
        >>> from greader.models.feed import validate_feed_id
        >>> validate_feed_id("feed/http://example.com/atom.xml")
        'feed/http://example.com/atom.xml'
    """
    if not isinstance(feed_id, str):
        raise ValidationError(f"Feed id must be a string, got {type(feed_id).__name__}")
    if not feed_id.startswith(FEED_PREFIX):
        raise ValidationError(f"Wrong id format '{feed_id}': it must have format 'feed/{{url}}'")

    url = feed_id[len(FEED_PREFIX) :]
    if not url or any(c.isspace() for c in url):
        raise ValidationError(f"Wrong id format '{feed_id}': '{url}' is not a well-formed URL")
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ValidationError(f"Wrong id format '{feed_id}': {e}") from e
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError(f"Wrong id format '{feed_id}': '{url}' is not an absolute URL")
    return feed_id


class Feed(ReaderModel):
    """A subscribed feed with its unread count."""

    id: str
    title: str = NO_TITLE
    unread_count: int = Field(default=0, alias="unreadCount")

    @field_validator("id", mode="before")
    @classmethod
    def _check_id(cls, v: Any) -> str:
        return validate_feed_id(v)

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, v: Any) -> Any:
        return NO_TITLE if v is None else v

    @field_validator("unread_count")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValidationError(f"Unread count must be non-negative, got {v}")
        return v

    @property
    def url(self) -> str:
        """Feed URL, the id without its ``feed/`` prefix."""
        return self.id[len(FEED_PREFIX) :]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Feed):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.title} ({self.url})"


class FeedEntry(ReaderModel):
    """A single item of a feed.

    Example:
        >>> from datetime import UTC, datetime
        >>> from greader.models.feed import FeedEntry
        >>> entry = FeedEntry(
        ...     id="tag:google.com,2005:reader/item/1",
        ...     published=datetime(2011, 1, 1, tzinfo=UTC),
        ...     feed_id="feed/http://example.com/rss",
        ...     title="Hello",
        ... )
        >>> entry.link is None
        True
    """

    # ids and bodies come from the service and are sent back as is
    model_config = ConfigDict(str_strip_whitespace=False)

    id: str = Field(..., min_length=1)
    published: datetime
    feed_id: str
    link: str | None = None
    title: str | None = None
    content: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _check_id(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValidationError("Entry id is required")
        return v

    @field_validator("feed_id", mode="before")
    @classmethod
    def _check_feed_id(cls, v: Any) -> str:
        return validate_feed_id(v)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeedEntry):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.title} ({self.link})"

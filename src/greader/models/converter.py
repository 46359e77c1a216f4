"""Conversion of API payloads into Feed / FeedEntry records.

Pure functions: nothing here touches the network. Field extraction goes
through :func:`dig`, which treats an absent, null or wrongly-typed node as a
normal ``None`` outcome instead of an exception.

Example:
    >>> from greader.models.converter import dig
    >>> item = {"alternate": [{"href": "https://example.com/a"}], "summary": None}
    >>> dig(item, "alternate", 0, "href")
    'https://example.com/a'
    >>> dig(item, "summary", "content") is None
    True
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from greader.core.exceptions import ReaderError, ResponseFormatError
from greader.models.feed import FEED_PREFIX, Feed, FeedEntry


def dig(node: Any, *path: str | int) -> Any:
    """Follow ``path`` through nested dicts/lists, returning None on any miss.

    String keys index dicts, integer keys index lists.

    Example:
        >>> from greader.models.converter import dig
        >>> dig({"a": [{"b": 1}]}, "a", 0, "b")
        1
        >>> dig({"a": []}, "a", 0, "b") is None
        True
        >>> dig({"a": "text"}, "a", "b") is None
        True
    """
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, list) or not -len(node) <= key < len(node):
                return None
            node = node[key]
        else:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        if node is None:
            return None
    return node


def parse_json(body: str, path: str, has_body: bool = False) -> dict[str, Any]:
    """Parse a response body as a JSON object.

    Raises:
        ResponseFormatError: If the body is not JSON or not a JSON object.

    Example:
        >>> from greader.models.converter import parse_json
        >>> parse_json('{"unreadcounts": []}', "api/0/unread-count?output=json")
        {'unreadcounts': []}
    """
    try:
        doc = json.loads(body)
    except (json.JSONDecodeError, TypeError) as e:
        raise ResponseFormatError(path, has_body, "wasn't in JSON format", cause=e) from e
    if not isinstance(doc, dict):
        raise ResponseFormatError(path, has_body, "wasn't a JSON object")
    return doc


def from_unix(seconds: int | float | str) -> datetime:
    """Convert unix time (seconds) to an aware UTC datetime.

    Example:
        >>> from greader.models.converter import from_unix
        >>> from_unix(0).isoformat()
        '1970-01-01T00:00:00+00:00'
    """
    return datetime.fromtimestamp(int(seconds), UTC)


def to_unix_millis(moment: datetime | None = None) -> int:
    """Milliseconds since the epoch for ``moment`` (default: now)."""
    moment = moment or datetime.now(UTC)
    return int(moment.timestamp() * 1000)


def _stream_list(doc: dict[str, Any], key: str, path: str) -> list[dict[str, Any]]:
    items = doc.get(key)
    if not isinstance(items, list):
        raise ResponseFormatError(path, reason=f"has no '{key}' list")
    return [item for item in items if isinstance(item, dict)]


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _is_feed(item: dict[str, Any]) -> bool:
    stream_id = item.get("id")
    return isinstance(stream_id, str) and stream_id.startswith(FEED_PREFIX)


def unread_counts(doc: dict[str, Any], path: str = "api/0/unread-count") -> dict[str, int]:
    """Map feed id -> unread count from an unread-count document.

    Non-feed streams (labels, states) are dropped.

    Example:
        >>> from greader.models.converter import unread_counts
        >>> unread_counts({"unreadcounts": [
        ...     {"id": "feed/http://a.com/rss", "count": 3},
        ...     {"id": "user/-/state/com.google/reading-list", "count": 3},
        ... ]})
        {'feed/http://a.com/rss': 3}
    """
    counts: dict[str, int] = {}
    for item in _stream_list(doc, "unreadcounts", path):
        if not _is_feed(item):
            continue
        try:
            counts[item["id"]] = int(item.get("count", 0))
        except (TypeError, ValueError) as e:
            raise ResponseFormatError(path, reason="has a non-numeric unread count", cause=e) from e
    return counts


def subscription_titles(
    doc: dict[str, Any], path: str = "api/0/subscription/list"
) -> dict[str, str | None]:
    """Map feed id -> title from a subscription list document."""
    return {
        item["id"]: _text(item.get("title"))
        for item in _stream_list(doc, "subscriptions", path)
        if _is_feed(item)
    }


def feeds_from(
    titles: dict[str, str | None],
    counts: dict[str, int],
    path: str = "api/0/subscription/list",
) -> list[Feed]:
    """Left-join subscriptions with unread counts (missing count -> 0).

    Raises:
        ResponseFormatError: If a subscription id is not a valid feed id.

    Example:
        >>> from greader.models.converter import feeds_from
        >>> feeds = feeds_from(
        ...     {"feed/http://a.com/": "Alpha", "feed/http://b.com/": "Beta"},
        ...     {"feed/http://a.com/": 3},
        ... )
        >>> [(f.title, f.unread_count) for f in feeds]
        [('Alpha', 3), ('Beta', 0)]
    """
    feeds = []
    for feed_id, title in titles.items():
        try:
            feeds.append(
                Feed(id=feed_id, title=title, unread_count=max(counts.get(feed_id, 0), 0))
            )
        except ReaderError as e:
            raise ResponseFormatError(
                path, reason=f"has a malformed feed id ({feed_id})", cause=e
            ) from e
    return feeds


def entries_from(
    doc: dict[str, Any], feed_id: str, path: str = "api/0/stream/contents"
) -> list[FeedEntry]:
    """Build entries from a stream contents document.

    ``id`` and ``published`` are required; ``link``, ``title`` and
    ``content`` are optional.

    Raises:
        ResponseFormatError: If an item lacks its id or publish time.
    """
    entries = []
    for item in _stream_list(doc, "items", path):
        entry_id = item.get("id")
        try:
            published = from_unix(item["published"])
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            raise ResponseFormatError(
                path, reason=f"has an item without a valid publish time ({entry_id})", cause=e
            ) from e
        try:
            entries.append(
                FeedEntry(
                    id=entry_id,
                    published=published,
                    feed_id=feed_id,
                    link=_text(dig(item, "alternate", 0, "href")),
                    title=_text(dig(item, "title")),
                    content=_text(dig(item, "summary", "content")),
                )
            )
        except ReaderError as e:
            raise ResponseFormatError(path, reason="has an item without an id", cause=e) from e
    return entries

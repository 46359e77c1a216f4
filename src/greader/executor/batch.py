"""Bounded-concurrency batch operations.

Fans a single-feed (or single-entry) client operation out across many
inputs. At most ``clamp(len(inputs), 1, 63)`` operations are in flight at
once, gated by an ``asyncio.Semaphore``.

Example:
    >>> from greader.executor.batch import BatchOrchestrator
    >>> BatchOrchestrator.degree(3)
    3
    >>> BatchOrchestrator.degree(0)
    1
    >>> BatchOrchestrator.degree(500)
    63
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TYPE_CHECKING, TypeVar

from greader.core.config import MAX_CONCURRENCY

if TYPE_CHECKING:
    from greader.core.client import ReaderClient
    from greader.models.feed import Feed, FeedEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BatchOrchestrator:
    """Runs client operations for many feeds/entries concurrently.

    Args:
        client: Client whose operations are fanned out.
        max_concurrency: Upper bound on in-flight operations (1..63).

    Example:
        >>> import asyncio
        >>> from greader import BatchOrchestrator, ReaderClient
        >>>
        >>> async def example(client: ReaderClient):
        ...     batch = BatchOrchestrator(client)
        ...     feeds = await client.get_feeds()
        ...     by_feed = await batch.get_entries(feeds)
        ...     await batch.mark_feeds_as_read(f for f in by_feed if by_feed[f])
    """

    def __init__(self, client: ReaderClient, max_concurrency: int = MAX_CONCURRENCY) -> None:
        self._client = client
        self._max_concurrency = max(1, min(max_concurrency, MAX_CONCURRENCY))

    @staticmethod
    def degree(count: int, limit: int = MAX_CONCURRENCY) -> int:
        """Concurrency used for ``count`` inputs: ``clamp(count, 1, limit)``."""
        return max(1, min(count, limit))

    async def _run(
        self,
        items: Sequence[T],
        func: Callable[[T], Awaitable[R]],
    ) -> list[R]:
        """Run ``func`` over ``items`` with bounded concurrency.

        Every call runs to completion; afterwards the first failure in input
        order is raised. Results keep the input order.
        """
        semaphore = asyncio.Semaphore(self.degree(len(items), self._max_concurrency))

        async def bounded(item: T) -> R:
            async with semaphore:
                return await func(item)

        results = await asyncio.gather(*[bounded(i) for i in items], return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results  # type: ignore[return-value]

    async def get_entries(self, feeds: Iterable[Feed], count: int = 0) -> dict[Feed, list[FeedEntry]]:
        """Entries of every feed, grouped by the feed they were fetched from."""
        feeds = list(dict.fromkeys(feeds))
        if not feeds:
            return {}

        logger.debug("Fetching entries of %d feeds", len(feeds))
        results = await self._run(feeds, lambda feed: self._client.get_entries(feed, count))
        return dict(zip(feeds, results))

    async def mark_feeds_as_read(self, feeds: Iterable[Feed]) -> None:
        """Mark every feed as read."""
        feeds = list(feeds)
        if not feeds:
            return
        logger.debug("Marking %d feeds as read", len(feeds))
        await self._run(feeds, self._client.mark_as_read)

    async def mark_entries_as_read(self, entries: Iterable[FeedEntry | str]) -> None:
        """Mark every entry (or entry id) as read."""
        entries = list(entries)
        if not entries:
            return
        logger.debug("Marking %d entries as read", len(entries))
        await self._run(entries, self._client.mark_as_read)

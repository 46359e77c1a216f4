"""Lazily computed, time-boxed cache cell.

``ExpiringValue`` holds one value together with the instant it was produced.
Reading it recomputes the value when it is absent or older than ``ttl``.
Readers are serialized on an ``asyncio.Lock`` and re-check validity after
acquiring it, so concurrent readers that find the cell stale share a single
recomputation instead of racing each other.

Example:
    >>> import asyncio
    >>> from datetime import timedelta
    >>> from greader.core.expiring import ExpiringValue
    >>> async def fetch():
    ...     return "token-1"
    >>> cell = ExpiringValue(fetch, ttl=timedelta(minutes=10))
    >>> asyncio.run(cell.get())
    'token-1'
    >>> cell.is_valid
    True
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Generic, TypeVar

T = TypeVar("T")


class ExpiringValue(Generic[T]):
    """Async cache cell with optional expiry.

    Args:
        factory: Coroutine function producing a fresh value.
        ttl: Validity window (timedelta or seconds). ``None`` never expires.
        clock: Monotonic clock in seconds, injectable for tests.

    Example:
        >>> import asyncio
        >>> from greader.core.expiring import ExpiringValue
        >>> calls = []
        >>> async def fetch():
        ...     calls.append(1)
        ...     return len(calls)
        >>> cell = ExpiringValue(fetch, ttl=60)
        >>> async def read_twice():
        ...     return await cell.get(), await cell.get()
        >>> asyncio.run(read_twice())
        (1, 1)
    """

    def __init__(
        self,
        factory: Callable[[], Awaitable[T]],
        ttl: timedelta | float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(ttl, timedelta):
            ttl = ttl.total_seconds()
        self._factory = factory
        self._ttl = ttl
        self._clock = clock
        self._value: T | None = None
        self._produced_at: float | None = None
        self._attempts = 0
        self._error: BaseException | None = None
        self._lock = asyncio.Lock()

    @property
    def ttl(self) -> float | None:
        """Validity window in seconds (None = no client-side expiry)."""
        return self._ttl

    @property
    def produced_at(self) -> float | None:
        """Clock reading when the current value was stored."""
        return self._produced_at

    @property
    def is_valid(self) -> bool:
        """True if a value is present and its window has not elapsed."""
        if self._produced_at is None:
            return False
        if self._ttl is None:
            return True
        return self._clock() - self._produced_at < self._ttl

    @property
    def is_refreshing(self) -> bool:
        """True while a recomputation holds the lock."""
        return self._lock.locked()

    def peek(self) -> T | None:
        """Return the current value without refreshing, None if invalid."""
        return self._value if self.is_valid else None

    async def get(self) -> T:
        """Return the cached value, recomputing it if absent or expired.

        If the factory raises, the cell stays empty and the error propagates,
        also to every reader that was already waiting for that attempt. A
        reader arriving after the failure tries again.
        """
        if self.is_valid:
            return self._value  # type: ignore[return-value]

        attempts = self._attempts
        async with self._lock:
            # Another reader may have refreshed while we waited
            if self.is_valid:
                return self._value  # type: ignore[return-value]
            if self._attempts != attempts and self._error is not None:
                raise self._error

            self.invalidate()
            self._attempts += 1
            self._error = None
            try:
                value = await self._factory()
            except Exception as e:
                self._error = e
                raise
            self.set(value)
            return value

    def set(self, value: T) -> None:
        """Store a value produced outside the factory, starting a new window."""
        self._value = value
        self._produced_at = self._clock()
        self._error = None

    def invalidate(self) -> None:
        """Drop the value; the next ``get`` recomputes it."""
        self._value = None
        self._produced_at = None

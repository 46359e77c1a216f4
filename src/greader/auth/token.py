"""Edit token cache.

Mutating API calls need a short-lived edit token (``T`` parameter). The
token is fetched on demand and reused for a fixed window (10 minutes).
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta

from greader.core.expiring import ExpiringValue

logger = logging.getLogger(__name__)

TOKEN_PATH = "api/0/token"
TOKEN_TTL = timedelta(minutes=10)


class EditTokenManager:
    """Caches the edit token returned by ``api/0/token``.

    Args:
        fetch: Coroutine function returning the raw token body. It must
            authenticate the session before requesting the token.
        ttl: Validity window of a fetched token.

    Example:
        >>> import asyncio
        >>> from greader.auth.token import EditTokenManager
        >>> async def fetch():
        ...     return "tok-123\\n"
        >>> asyncio.run(EditTokenManager(fetch).get())
        'tok-123'
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[str]],
        ttl: timedelta | float = TOKEN_TTL,
    ) -> None:
        self._fetch = fetch
        self._token: ExpiringValue[str] = ExpiringValue(self._load, ttl=ttl)

    async def get(self) -> str:
        """Current edit token, fetched if absent or expired."""
        return await self._token.get()

    def invalidate(self) -> None:
        self._token.invalidate()

    async def _load(self) -> str:
        token = (await self._fetch()).strip()
        logger.debug("Fetched edit token")
        return token

"""Reader API client.

``ReaderClient`` ties the pipeline together: it authenticates through its
session manager, attaches the edit token to mutating calls, sends requests
through the executor and converts the payloads into records. All state
(session, edit token, HTTP connections) belongs to the instance, so several
authenticated clients can live in one process.

Example:
    >>> import asyncio
    >>> from greader import ReaderClient
    >>>
    >>> async def example():
    ...     async with ReaderClient.with_password("me@example.com", "secret") as client:
    ...         for feed in await client.get_feeds():
    ...             if feed.unread_count:
    ...                 entries = await client.get_entries(feed, count=10)
    ...                 await client.mark_as_read(feed)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from greader.auth.session import CookieSession, OAuthBearer
from greader.auth.token import TOKEN_PATH, EditTokenManager
from greader.core.config import Settings, get_settings
from greader.core.exceptions import ConfigurationError, OperationFailure, ReaderError
from greader.http.client import FormParams, RequestExecutor
from greader.models import converter
from greader.models.feed import Feed, FeedEntry, validate_feed_id
from greader.protocols.session import SessionManager

logger = logging.getLogger(__name__)

UNREAD_COUNT_PATH = "api/0/unread-count?output=json"
SUBSCRIPTION_LIST_PATH = "api/0/subscription/list?output=json"
STREAM_CONTENTS_PATH = "api/0/stream/contents/feed/"
MARK_ALL_AS_READ_PATH = "api/0/mark-all-as-read"
EDIT_TAG_PATH = "api/0/edit-tag"

READ_TAG = "user/-/state/com.google/read"
MAX_ENTRIES = 1000
SUCCESS = "OK"


def stream_contents_path(feed_id: str, count: int = 0, ck: int | None = None) -> str:
    """Request path for the entries of ``feed_id``.

    ``count`` between 1 and 1000 asks for that many most recent entries; any
    other value asks for up to 1000 unread entries.

    Example:
        >>> from greader.core.client import stream_contents_path
        >>> stream_contents_path("feed/http://a.com/rss", 5, ck=1)
        'api/0/stream/contents/feed/http://a.com/rss?n=5&ck=1'
        >>> stream_contents_path("feed/http://a.com/rss", 0, ck=1)
        'api/0/stream/contents/feed/http://a.com/rss?xt=user/-/state/com.google/read&n=1000&ck=1'
    """
    if ck is None:
        ck = converter.to_unix_millis()
    url = quote(feed_id[len("feed/") :], safe=":/")
    if 1 <= count <= MAX_ENTRIES:
        return f"{STREAM_CONTENTS_PATH}{url}?n={count}&ck={ck}"
    return f"{STREAM_CONTENTS_PATH}{url}?xt={READ_TAG}&n={MAX_ENTRIES}&ck={ck}"


class ReaderClient:
    """Async client for the Google Reader API.

    Args:
        session: Authentication strategy (CookieSession or OAuthBearer).
        executor: Executor shared with the session.
        settings: Client settings (defaults loaded from the environment).

    Example:
        >>> from greader import ReaderClient
        >>> client = ReaderClient.with_cookies("SID", "AUTH")
        >>> client.session.state.value
        'logged_in'
    """

    def __init__(
        self,
        session: SessionManager,
        executor: RequestExecutor,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._session = session
        self._executor = executor
        self._edit_token = EditTokenManager(
            lambda: self.send(TOKEN_PATH), ttl=self._settings.edit_token_ttl
        )

    # --- Construction ---

    @classmethod
    def with_password(
        cls,
        username: str,
        password: str,
        settings: Settings | None = None,
        **executor_kwargs: Any,
    ) -> ReaderClient:
        """Client logging in with ClientLogin username/password."""
        settings = settings or get_settings()
        executor = RequestExecutor.from_settings(settings, **executor_kwargs)
        session = CookieSession(
            executor,
            username,
            password,
            auth_base_url=settings.auth_base_url,
            scheme=settings.auth_scheme,
        )
        return cls(session, executor, settings)

    @classmethod
    def with_cookies(
        cls,
        sid: str,
        auth: str,
        settings: Settings | None = None,
        **executor_kwargs: Any,
    ) -> ReaderClient:
        """Client reusing a known SID/Auth pair."""
        settings = settings or get_settings()
        executor = RequestExecutor.from_settings(settings, **executor_kwargs)
        session = CookieSession.from_cookies(executor, sid, auth, scheme=settings.auth_scheme)
        return cls(session, executor, settings)

    @classmethod
    def with_oauth(
        cls,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        settings: Settings | None = None,
        **executor_kwargs: Any,
    ) -> ReaderClient:
        """Client authenticating with an OAuth refresh token."""
        settings = settings or get_settings()
        executor = RequestExecutor.from_settings(settings, **executor_kwargs)
        session = OAuthBearer(
            executor,
            client_id,
            client_secret,
            refresh_token,
            auth_base_url=settings.auth_base_url,
            ttl=settings.access_token_ttl,
        )
        return cls(session, executor, settings)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **executor_kwargs: Any) -> ReaderClient:
        """Client for the credentials found in ``settings``.

        OAuth wins if a refresh token is configured, then an SID/Auth pair,
        then username/password.

        Raises:
            ConfigurationError: If no complete set of credentials is configured.
        """
        s = settings or get_settings()
        if s.refresh_token:
            if not s.client_id or not s.client_secret:
                raise ConfigurationError("OAuth needs client_id and client_secret with refresh_token")
            return cls.with_oauth(s.client_id, s.client_secret, s.refresh_token, s, **executor_kwargs)
        if s.sid and s.auth:
            return cls.with_cookies(s.sid, s.auth, s, **executor_kwargs)
        if s.username and s.password:
            return cls.with_password(s.username, s.password, s, **executor_kwargs)
        raise ConfigurationError(
            "No credentials configured: set GREADER_USERNAME/GREADER_PASSWORD, "
            "GREADER_SID/GREADER_AUTH or GREADER_REFRESH_TOKEN"
        )

    # --- Properties ---

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def edit_token(self) -> EditTokenManager:
        return self._edit_token

    @property
    def settings(self) -> Settings:
        return self._settings

    # --- Requests ---

    async def send(self, path: str, params: FormParams | None = None) -> str:
        """Send an authenticated request and return the raw body."""
        credential = await self._session.ensure_authenticated()
        return await self._executor.send(path, params, credential=credential)

    async def get_json(self, path: str) -> dict[str, Any]:
        """GET ``path`` and parse the body as a JSON object."""
        return converter.parse_json(await self.send(path), path)

    # --- Operations ---

    async def get_feeds(self) -> list[Feed]:
        """Subscribed feeds with their unread counts, one per feed id."""
        counts = converter.unread_counts(await self.get_json(UNREAD_COUNT_PATH), UNREAD_COUNT_PATH)
        titles = converter.subscription_titles(
            await self.get_json(SUBSCRIPTION_LIST_PATH), SUBSCRIPTION_LIST_PATH
        )
        feeds = converter.feeds_from(titles, counts, SUBSCRIPTION_LIST_PATH)
        logger.debug("Loaded %d feeds", len(feeds))
        return feeds

    async def get_entries(self, feed: Feed | str, count: int = 0) -> list[FeedEntry]:
        """Entries of ``feed``.

        If ``count`` is between 1 and 1000 it is the number of most recent
        entries to load; otherwise up to 1000 unread entries are loaded.

        Raises:
            ValidationError: If ``feed`` is a malformed feed id.
        """
        feed_id = feed.id if isinstance(feed, Feed) else validate_feed_id(feed)
        path = stream_contents_path(feed_id, count)
        entries = converter.entries_from(await self.get_json(path), feed_id, path)
        logger.debug("Loaded %d entries from %s", len(entries), feed_id)
        return entries

    async def mark_as_read(self, target: Feed | FeedEntry | str) -> None:
        """Mark a whole feed, an entry, or the entry with the given id as read.

        Raises:
            OperationFailure: If the service did not answer ``OK``.
        """
        if isinstance(target, Feed):
            await self._mutate(
                MARK_ALL_AS_READ_PATH,
                [("s", target.id), ("t", target.title)],
                target.id,
                f"Mark feed '{target.id}' as read probably failed: service didn't return OK.",
            )
            return

        entry_id = target.id if isinstance(target, FeedEntry) else target
        await self._mutate(
            EDIT_TAG_PATH,
            [("i", entry_id), ("a", READ_TAG), ("ac", "edit")],
            entry_id,
            f"Mark entry '{entry_id}' as read probably failed: service didn't return OK.",
        )

    async def _mutate(
        self, path: str, params: list[tuple[str, str]], target_id: str, failure: str
    ) -> None:
        token = await self._edit_token.get()
        body = await self.send(path, [*params, ("T", token)])
        if body != SUCCESS:
            raise OperationFailure(target_id, failure)

    # --- Lifecycle ---

    async def close(self) -> None:
        """Close HTTP connections."""
        await self._executor.close()

    async def __aenter__(self) -> ReaderClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def credentials_valid(
    username: str, password: str, settings: Settings | None = None, **executor_kwargs: Any
) -> bool:
    """True if the service accepts ``username``/``password``."""
    async with ReaderClient.with_password(username, password, settings, **executor_kwargs) as client:
        try:
            await client.session.ensure_authenticated()
        except ReaderError as e:
            logger.debug("Credentials check failed: %s", e)
            return False
    return True


async def session_valid(
    sid: str, auth: str, settings: Settings | None = None, **executor_kwargs: Any
) -> bool:
    """True if the SID/Auth pair is still accepted by the service."""
    async with ReaderClient.with_cookies(sid, auth, settings, **executor_kwargs) as client:
        try:
            await client.get_json(UNREAD_COUNT_PATH)
        except ReaderError as e:
            logger.debug("Session check failed: %s", e)
            return False
    return True

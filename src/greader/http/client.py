"""HTTP request execution against the reader API.

``RequestExecutor`` sends one request and returns the raw body text.
A parameter list turns the request into a form-encoded POST, otherwise a GET
is issued. Every failure (connection error, timeout, non-2xx status) is
reported as :class:`~greader.core.exceptions.RequestFailure`.

Example:
    >>> from greader.http import RequestExecutor
    >>>
    >>> async with RequestExecutor("https://www.google.com/reader/") as executor:
    ...     body = await executor.send("api/0/token", credential=credential)
    ...     await executor.send("api/0/edit-tag", [("i", entry_id), ("T", body)],
    ...                         credential=credential)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Union

import httpx

from greader.core.exceptions import RequestFailure

if TYPE_CHECKING:
    from greader.core.config import Settings
    from greader.protocols.session import Credential

logger = logging.getLogger(__name__)

FormParams = Union[Sequence[tuple[str, str]], Mapping[str, str]]


def encode_form(params: FormParams) -> str:
    """Join parameters as ``key=value`` pairs separated by ``&``.

    Values are taken verbatim, in the given order; the service expects them
    unescaped.

    Example:
        >>> from greader.http.client import encode_form
        >>> encode_form([("s", "feed/http://a.com/rss"), ("T", "tok")])
        's=feed/http://a.com/rss&T=tok'
    """
    pairs = params.items() if isinstance(params, Mapping) else params
    return "&".join(f"{key}={value}" for key, value in pairs)


class RequestExecutor:
    """Async executor for authenticated reader API requests.

    Example:
        >>> executor = RequestExecutor("https://rss.example.com/api/greader.php/reader/")
        >>> executor.base_url
        'https://rss.example.com/api/greader.php/reader/'
        >>> executor.timeout
        30.0

    Attributes:
        base_url: URL that request paths are relative to
        timeout: Per-request timeout in seconds
        user_agent: User-Agent header value
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        user_agent: str = "greader/0.1",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            base_url: URL that request paths are relative to.
            timeout: Per-request timeout in seconds.
            user_agent: User-Agent header.
            client: Pre-built httpx client (not closed by ``close``).
        """
        self._base_url = base_url
        self._timeout = timeout
        self._user_agent = user_agent
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> RequestExecutor:
        """Build an executor from :class:`~greader.core.config.Settings`."""
        return cls(
            settings.base_url,
            timeout=settings.request_timeout,
            user_agent=settings.user_agent,
            client=client,
        )

    @property
    def base_url(self) -> str:
        """URL that request paths are relative to."""
        return self._base_url

    @property
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        return self._timeout

    @property
    def user_agent(self) -> str:
        """User-Agent header value."""
        return self._user_agent

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": self._user_agent},
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this executor created it."""
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RequestExecutor:
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def url_for(self, path: str, base_url: str | None = None) -> str:
        """Absolute URL of ``path``.

        Example:
            >>> RequestExecutor("https://www.google.com/reader").url_for("api/0/token")
            'https://www.google.com/reader/api/0/token'
        """
        base = base_url or self._base_url
        return f"{base.rstrip('/')}/{path.lstrip('/')}"

    async def send(
        self,
        path: str,
        params: FormParams | None = None,
        *,
        credential: Credential | None = None,
        base_url: str | None = None,
    ) -> str:
        """Send one request and return the response body.

        Args:
            path: Path relative to the base URL (may carry a query string).
            params: Form parameters; when given the request is a POST.
            credential: Credential to present (none for login requests).
            base_url: Override of the executor's base URL.

        Returns:
            Response body text.

        Raises:
            RequestFailure: On transport errors, timeouts and non-2xx statuses.
        """
        has_body = params is not None
        method = "POST" if has_body else "GET"
        headers: dict[str, str] = {}
        if credential is not None:
            headers.update(credential.headers)

        content: bytes | None = None
        if has_body:
            content = encode_form(params).encode("utf-8")
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        client = await self._ensure_client()
        logger.debug("%s %s", method, path)
        try:
            response = await client.request(
                method, self.url_for(path, base_url), content=content, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.debug("%s %s -> HTTP %d", method, path, status)
            raise RequestFailure(path, has_body, status, cause=e) from e
        except httpx.HTTPError as e:
            logger.debug("%s %s -> %s", method, path, type(e).__name__)
            raise RequestFailure(path, has_body, cause=e) from e

        return response.text

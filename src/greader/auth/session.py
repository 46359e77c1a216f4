"""Authentication strategies.

Two mutually exclusive ways of proving identity to the service:

- :class:`CookieSession`: ClientLogin with username/password (or a cookie pair
  injected directly), presented as ``Authorization: GoogleLogin auth=...``
  plus a ``SID`` cookie. Valid until the service invalidates it.
- :class:`OAuthBearer`: a long-lived refresh token exchanged for a short-lived
  access token, presented as ``Authorization: Bearer ...`` and refreshed after
  a fixed validity window.

They classify failures differently: only ClientLogin turns HTTP 403 into
:class:`~greader.core.exceptions.CredentialError`.

Example:
    >>> from greader.auth.session import CookieSession
    >>> from greader.http import RequestExecutor
    >>> executor = RequestExecutor("https://www.google.com/reader/")
    >>> session = CookieSession.from_cookies(executor, sid="s1", auth="a1")
    >>> session.state.value
    'logged_in'
    >>> session.auth
    'a1'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from greader.core.exceptions import CredentialError, RequestFailure, ResponseFormatError
from greader.core.expiring import ExpiringValue
from greader.http.client import RequestExecutor
from greader.models.converter import parse_json
from greader.protocols.session import SessionState

logger = logging.getLogger(__name__)

AUTH_BASE_URL = "https://www.google.com/"
LOGIN_PATH = "accounts/ClientLogin"
OAUTH_TOKEN_PATH = "o/oauth2/token"


@dataclass(frozen=True)
class CookieCredential:
    """ClientLogin session: SID cookie plus Auth token.

    Example:
        >>> from greader.auth.session import CookieCredential
        >>> CookieCredential(sid="s", auth="a").headers
        {'Authorization': 'GoogleLogin auth=a', 'Cookie': 'SID=s'}
    """

    sid: str
    auth: str
    scheme: str = "GoogleLogin"

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"{self.scheme} auth={self.auth}", "Cookie": f"SID={self.sid}"}

    def __repr__(self) -> str:
        return f"CookieCredential(scheme={self.scheme!r})"


@dataclass(frozen=True)
class BearerCredential:
    """OAuth access token."""

    access_token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    def __repr__(self) -> str:
        return "BearerCredential(...)"


def parse_client_login(body: str, scheme: str = "GoogleLogin") -> CookieCredential:
    """Extract ``SID=`` and ``Auth=`` markers from a ClientLogin response.

    Raises:
        ResponseFormatError: If either marker is missing.

    Example:
        >>> from greader.auth.session import parse_client_login
        >>> cred = parse_client_login("SID=abc\\nLSID=def\\nAuth=xyz\\n")
        >>> cred.sid, cred.auth
        ('abc', 'xyz')
    """
    values: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep:
            values[key] = value.strip()

    sid, auth = values.get("SID"), values.get("Auth")
    if not sid or not auth:
        raise ResponseFormatError(LOGIN_PATH, True, "can't be parsed for SID and Auth")
    return CookieCredential(sid=sid, auth=auth, scheme=scheme)


class CookieSession:
    """Password (ClientLogin) session with cookie presentation.

    Logs in lazily on the first :meth:`ensure_authenticated` and keeps the
    credential until :meth:`reset`.

    Args:
        executor: Executor used for the login request.
        username: Account name.
        password: Account password.
        auth_base_url: Base URL of ``accounts/ClientLogin``.
        scheme: Authorization header scheme.
        service: ClientLogin service name.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        username: str | None = None,
        password: str | None = None,
        *,
        auth_base_url: str = AUTH_BASE_URL,
        scheme: str = "GoogleLogin",
        service: str = "reader",
    ) -> None:
        self._executor = executor
        self._username = username
        self._password = password
        self._auth_base_url = auth_base_url
        self._scheme = scheme
        self._service = service
        self._state = SessionState.LOGGED_OUT
        self._credential: ExpiringValue[CookieCredential] = ExpiringValue(self._login)

    @classmethod
    def from_cookies(
        cls,
        executor: RequestExecutor,
        sid: str,
        auth: str,
        *,
        scheme: str = "GoogleLogin",
    ) -> CookieSession:
        """Session from an already known SID/Auth pair (no login needed)."""
        session = cls(executor, scheme=scheme)
        session._credential.set(CookieCredential(sid=sid, auth=auth, scheme=scheme))
        session._state = SessionState.LOGGED_IN
        return session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def sid(self) -> str | None:
        """Current SID, None when logged out."""
        credential = self._credential.peek()
        return credential.sid if credential else None

    @property
    def auth(self) -> str | None:
        """Current Auth token, None when logged out."""
        credential = self._credential.peek()
        return credential.auth if credential else None

    async def ensure_authenticated(self) -> CookieCredential:
        """Log in unless already logged in; return the cookie credential.

        Raises:
            CredentialError: Missing or rejected username/password.
            RequestFailure: Login endpoint unreachable or failing.
            ResponseFormatError: Login response without SID/Auth.
        """
        return await self._credential.get()

    def reset(self) -> None:
        self._credential.invalidate()
        self._state = SessionState.LOGGED_OUT

    async def _login(self) -> CookieCredential:
        if not self._username or not self._password:
            raise CredentialError("Username and/or password isn't specified.")

        self._state = SessionState.LOGGING_IN
        try:
            credential = await self._client_login()
        except BaseException:
            self._state = SessionState.LOGGED_OUT
            raise

        self._state = SessionState.LOGGED_IN
        logger.info("Logged in as %s", self._username)
        return credential

    async def _client_login(self) -> CookieCredential:
        params = [
            ("service", self._service),
            ("Email", self._username),
            ("Passwd", self._password),
            ("continue", "http://www.google.com/"),
        ]
        try:
            body = await self._executor.send(LOGIN_PATH, params, base_url=self._auth_base_url)
        except RequestFailure as e:
            if e.status_code == 403:
                raise CredentialError(
                    "Login failed: incorrect username or password.", cause=e
                ) from e
            raise
        return parse_client_login(body, self._scheme)


class OAuthBearer:
    """OAuth refresh-token session with bearer presentation.

    The access token is refreshed once ``ttl`` has elapsed since it was
    obtained. HTTP errors from the token endpoint are plain
    :class:`~greader.core.exceptions.RequestFailure`.

    Args:
        executor: Executor used for the token request.
        client_id: OAuth client id.
        client_secret: OAuth client secret.
        refresh_token: Long-lived refresh token.
        auth_base_url: Base URL of ``o/oauth2/token``.
        ttl: Access token validity window.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        *,
        auth_base_url: str = AUTH_BASE_URL,
        ttl: timedelta | float = 3300.0,
    ) -> None:
        self._executor = executor
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._auth_base_url = auth_base_url
        self._access_token: ExpiringValue[BearerCredential] = ExpiringValue(self._refresh, ttl=ttl)

    @property
    def state(self) -> SessionState:
        if self._access_token.is_valid:
            return SessionState.LOGGED_IN
        if self._access_token.is_refreshing:
            return SessionState.LOGGING_IN
        return SessionState.LOGGED_OUT

    async def ensure_authenticated(self) -> BearerCredential:
        """Return a valid access token, refreshing it when expired.

        Raises:
            RequestFailure: Token endpoint unreachable or failing.
            ResponseFormatError: Token response without ``access_token``.
        """
        return await self._access_token.get()

    def reset(self) -> None:
        self._access_token.invalidate()

    async def _refresh(self) -> BearerCredential:
        params = [
            ("client_id", self._client_id),
            ("client_secret", self._client_secret),
            ("refresh_token", self._refresh_token),
            ("grant_type", "refresh_token"),
        ]
        body = await self._executor.send(OAUTH_TOKEN_PATH, params, base_url=self._auth_base_url)
        doc = parse_json(body, OAUTH_TOKEN_PATH, has_body=True)
        token = doc.get("access_token")
        if not isinstance(token, str) or not token:
            raise ResponseFormatError(OAUTH_TOKEN_PATH, True, "has no access_token")
        logger.info("Refreshed OAuth access token")
        return BearerCredential(access_token=token)

"""Session manager protocol.

Defines the interface shared by the authentication strategies
(cookie session and OAuth bearer).

Example:
    >>> from greader.protocols.session import SessionManager, SessionState
    >>> hasattr(SessionManager, "ensure_authenticated")
    True
    >>> SessionState.LOGGED_IN.value
    'logged_in'
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable


class SessionState(str, Enum):
    """Authentication state of a session.

    LOGGED_OUT -> LOGGING_IN -> LOGGED_IN, back to LOGGED_OUT on failure.
    """

    LOGGED_OUT = "logged_out"
    LOGGING_IN = "logging_in"
    LOGGED_IN = "logged_in"


@runtime_checkable
class Credential(Protocol):
    """Authentication material attached to every API request."""

    @property
    def headers(self) -> dict[str, str]:
        """Headers presenting this credential (Authorization, Cookie)."""
        ...


@runtime_checkable
class SessionManager(Protocol):
    """Session manager protocol.

    Implementations: CookieSession (password / injected cookies), OAuthBearer.
    """

    @property
    def state(self) -> SessionState:
        """Current authentication state."""
        ...

    async def ensure_authenticated(self) -> Credential:
        """Authenticate if needed and return the current credential."""
        ...

    def reset(self) -> None:
        """Forget the credential; the next call authenticates again."""
        ...

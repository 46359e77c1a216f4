"""Authentication strategies and edit token cache."""

from greader.auth.session import (
    BearerCredential,
    CookieCredential,
    CookieSession,
    OAuthBearer,
    parse_client_login,
)
from greader.auth.token import EditTokenManager

__all__ = [
    "BearerCredential",
    "CookieCredential",
    "CookieSession",
    "EditTokenManager",
    "OAuthBearer",
    "parse_client_login",
]

"""
greader - Async client for the Google Reader API.

greader talks to services implementing the Google Reader API (FreshRSS,
Inoreader, The Old Reader, ...): it authenticates, lists subscribed feeds
with unread counts, fetches entries and marks feeds or entries as read.

Key Features:
- ClientLogin (password or injected cookies) and OAuth bearer sessions
- Edit token cached for 10 minutes, fetched only when needed
- Typed errors separating bad credentials, transport failures and API changes
- Bounded-concurrency batch fetch and mark-as-read

Quick Start:
    >>> from greader import BatchOrchestrator, ReaderClient
    >>> async with ReaderClient.with_password("me@example.com", "secret") as client:
    ...     feeds = await client.get_feeds()
    ...     entries = await BatchOrchestrator(client).get_entries(feeds)
"""

from greader.auth.session import CookieSession, OAuthBearer
from greader.auth.token import EditTokenManager
from greader.core.client import ReaderClient, credentials_valid, session_valid
from greader.core.config import Settings, get_settings
from greader.core.exceptions import (
    ConfigurationError,
    CredentialError,
    OperationFailure,
    ReaderError,
    RequestFailure,
    ResponseFormatError,
    ValidationError,
)
from greader.core.expiring import ExpiringValue
from greader.executor.batch import BatchOrchestrator
from greader.http.client import RequestExecutor
from greader.models.feed import Feed, FeedEntry
from greader.protocols.session import SessionManager, SessionState

__version__ = "0.1.0"

__all__ = [
    # Client
    "ReaderClient",
    "BatchOrchestrator",
    "credentials_valid",
    "session_valid",
    # Sessions
    "CookieSession",
    "EditTokenManager",
    "OAuthBearer",
    "SessionManager",
    "SessionState",
    # Infrastructure
    "ExpiringValue",
    "RequestExecutor",
    "Settings",
    "get_settings",
    # Models
    "Feed",
    "FeedEntry",
    # Errors
    "ConfigurationError",
    "CredentialError",
    "OperationFailure",
    "ReaderError",
    "RequestFailure",
    "ResponseFormatError",
    "ValidationError",
    "__version__",
]

"""Protocol definitions."""

from greader.protocols.session import Credential, SessionManager, SessionState

__all__ = [
    "Credential",
    "SessionManager",
    "SessionState",
]

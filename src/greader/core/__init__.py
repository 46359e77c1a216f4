"""Core configuration, error types and the expiring cache cell.

The client itself lives in :mod:`greader.core.client`.
"""

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

__all__ = [
    "ConfigurationError",
    "CredentialError",
    "ExpiringValue",
    "OperationFailure",
    "ReaderError",
    "RequestFailure",
    "ResponseFormatError",
    "Settings",
    "ValidationError",
    "get_settings",
]

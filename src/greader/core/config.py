"""greader configuration.

Client settings loaded from environment variables with GREADER_ prefix.

Example:
    >>> from greader.core.config import get_settings
    >>> settings = get_settings(log_level="DEBUG")
    >>> settings.log_level
    'DEBUG'
    >>> settings.edit_token_ttl
    600.0
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_CONCURRENCY = 63


class Settings(BaseSettings):
    """Client settings.

    Loads from environment variables with GREADER_ prefix.

    Example:
        >>> from greader.core.config import Settings
        >>> s = Settings(base_url="https://rss.example.com/api/greader.php/reader/")
        >>> s.base_url
        'https://rss.example.com/api/greader.php/reader/'
        >>> s.max_concurrency
        63
    """

    model_config = SettingsConfigDict(
        env_prefix="GREADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    base_url: str = Field(
        default="https://www.google.com/reader/", description="Base URL of the reader API"
    )
    auth_base_url: str = Field(
        default="https://www.google.com/", description="Base URL of ClientLogin / OAuth endpoints"
    )
    auth_scheme: str = Field(default="GoogleLogin", description="Authorization header scheme")
    user_agent: str = Field(default="greader/0.1")

    # Timing
    request_timeout: float = Field(default=30.0, ge=1.0)
    edit_token_ttl: float = Field(default=600.0, gt=0, description="Edit token validity, seconds")
    access_token_ttl: float = Field(
        default=3300.0, gt=0, description="OAuth access token validity, seconds"
    )

    # Batch operations
    max_concurrency: int = Field(default=MAX_CONCURRENCY, ge=1, le=MAX_CONCURRENCY)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["console", "json"] = Field(default="console")

    # Credentials (used by the CLI, never persisted)
    username: str | None = None
    password: str | None = None
    sid: str | None = None
    auth: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    refresh_token: str | None = None


def get_settings(**overrides: Any) -> Settings:
    """Get settings with optional overrides.

    Example:
        >>> from greader.core.config import get_settings
        >>> s = get_settings(request_timeout=5.0)
        >>> s.request_timeout
        5.0
    """
    return Settings(**overrides)

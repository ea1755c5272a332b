"""Authentication configuration settings.

Loaded from environment variables with AUTH_ prefix.

Environment Variables:
    AUTH_JWT_SECRET: Shared secret used to verify HS256 access tokens
    AUTH_ISSUER: Expected JWT issuer claim (empty disables the check)
    AUTH_AUDIENCE: Expected JWT audience claim
    AUTH_DEV_BYPASS: Skip JWT validation in development
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    """Authentication configuration loaded from environment variables.

    Example:
        >>> settings = AuthSettings()
        >>> settings.audience
        'authenticated'
        >>> settings.is_configured()
        False
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: str = Field(
        default="",
        repr=False,  # Security: never log the signing secret
        description="Shared secret for HS256 token verification",
    )
    issuer: str = Field(
        default="",
        description="Expected JWT issuer claim; empty disables the issuer check",
    )
    audience: str = Field(
        default="authenticated",
        description="Expected JWT audience claim",
    )
    dev_bypass: bool = Field(
        default=False,
        description="Skip JWT validation in development",
    )

    def is_configured(self) -> bool:
        """Check that a verification secret is available (non-throwing)."""
        return bool(self.jwt_secret)


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """Get singleton AuthSettings instance.

    Cached for performance - settings are loaded once per application lifecycle.
    Clear cache with ``get_auth_settings.cache_clear()`` for testing.
    """
    return AuthSettings()

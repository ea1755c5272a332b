"""Identity provider configuration settings.

Loaded from environment variables with IDENTITY_ prefix.

Environment Variables:
    IDENTITY_BASE_URL: Auth server base URL (e.g. https://project.example.co/auth/v1)
    IDENTITY_SERVICE_ROLE_KEY: Service-role key for the admin API
    IDENTITY_TIMEOUT: HTTP request timeout in seconds
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdentityProviderSettings(BaseSettings):
    """Identity provider admin API configuration.

    Example:
        >>> settings = IdentityProviderSettings()
        >>> settings.is_configured()
        False
    """

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = Field(default="", description="Auth server base URL")
    service_role_key: str = Field(
        default="",
        repr=False,  # Security: never log the service-role key
        description="Service-role key for the admin API",
    )
    timeout: float = Field(default=10.0, gt=0, le=120, description="HTTP timeout in seconds")

    def is_configured(self) -> bool:
        """Check that both the base URL and the service-role key are set."""
        return bool(self.base_url and self.service_role_key)


@lru_cache(maxsize=1)
def get_identity_settings() -> IdentityProviderSettings:
    """Get singleton IdentityProviderSettings instance.

    Clear cache with ``get_identity_settings.cache_clear()`` for testing.
    """
    return IdentityProviderSettings()

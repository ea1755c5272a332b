"""Account lifecycle configuration settings.

Loaded from environment variables with ACCOUNTS_ prefix.

Environment Variables:
    ACCOUNTS_PROTECTED_EMAIL: Email of the account that can never be modified or deleted
    ACCOUNTS_STORE_BACKEND: "memory" or "sql"
    ACCOUNTS_IDENTITY_BACKEND: "memory" or "gotrue"
    ACCOUNTS_IDENTITY_MAX_ATTEMPTS_PER_LAYER: Attempts per identity deletion layer
    ACCOUNTS_IDENTITY_BACKOFF_SECONDS: Delay before the second identity attempt
    ACCOUNTS_IDENTITY_BACKOFF_MULTIPLIER: Growth factor of further delays
    ACCOUNTS_COUNTER_MAX_ATTEMPTS: Compare-and-set attempts for promo counters
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AccountsSettings(BaseSettings):
    """Account lifecycle configuration loaded from environment variables.

    Example:
        >>> settings = AccountsSettings(protected_email="Root@Example.com")
        >>> settings.protected_email
        'root@example.com'
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    protected_email: str | None = Field(
        default=None,
        description="Email of the account immune to deletion and mutation",
    )
    store_backend: Literal["memory", "sql"] = Field(
        default="memory",
        description="Account store backend",
    )
    identity_backend: Literal["memory", "gotrue"] = Field(
        default="memory",
        description="Identity provider backend",
    )
    identity_max_attempts_per_layer: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Attempts made in each identity deletion layer",
    )
    identity_backoff_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=30.0,
        description="Delay before the second identity deletion attempt",
    )
    identity_backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Growth factor applied to each further delay",
    )
    counter_max_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Compare-and-set attempts when decrementing promo counters",
    )

    @field_validator("protected_email", mode="before")
    @classmethod
    def _normalize_email(cls, v: object) -> str | None:
        if v is None:
            return None
        normalized = str(v).strip().lower()
        return normalized or None


@lru_cache(maxsize=1)
def get_accounts_settings() -> AccountsSettings:
    """Get singleton AccountsSettings instance.

    Clear cache with ``get_accounts_settings.cache_clear()`` for testing.
    """
    return AccountsSettings()

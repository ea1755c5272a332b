"""Dominium Infra Identity -- identity provider adapters."""

from dominium.infra.identity.gotrue import GoTrueIdentityProvider
from dominium.infra.identity.memory import InMemoryIdentityProvider
from dominium.infra.identity.settings import (
    IdentityProviderSettings,
    get_identity_settings,
)

__all__ = [
    "GoTrueIdentityProvider",
    "IdentityProviderSettings",
    "InMemoryIdentityProvider",
    "get_identity_settings",
]

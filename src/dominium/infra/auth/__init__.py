"""Dominium Infra Auth -- JWT validation and principal extraction."""

from dominium.infra.auth.dependencies import (
    CurrentPrincipal,
    OptionalPrincipal,
    get_current_principal,
    get_optional_principal,
)
from dominium.infra.auth.dev_bypass import (
    DEV_ACTOR_ID,
    DEV_BYPASS_CLAIMS,
    dev_actor_account,
    resolve_dev_bypass,
)
from dominium.infra.auth.middleware.jwt_auth import JWTAuthMiddleware
from dominium.infra.auth.settings import AuthSettings, get_auth_settings

__all__ = [
    "DEV_ACTOR_ID",
    "DEV_BYPASS_CLAIMS",
    "AuthSettings",
    "CurrentPrincipal",
    "JWTAuthMiddleware",
    "OptionalPrincipal",
    "dev_actor_account",
    "get_auth_settings",
    "get_current_principal",
    "get_optional_principal",
    "resolve_dev_bypass",
]

"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with external services. Implementations (adapters) live in infrastructure.
"""

from dominium.foundation.domain.ports.account_store import AccountStorePort
from dominium.foundation.domain.ports.audit_log import AuditLogPort
from dominium.foundation.domain.ports.identity_provider import (
    IdentityProviderError,
    IdentityProviderPort,
)
from dominium.foundation.domain.ports.promo_counters import PromoCounterStorePort

__all__ = [
    "AccountStorePort",
    "AuditLogPort",
    "IdentityProviderError",
    "IdentityProviderPort",
    "PromoCounterStorePort",
]

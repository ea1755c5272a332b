"""Dominium Foundation Domain -- pure Python domain primitives.

Exceptions, the authenticated principal, account and permission value
objects, audit records, and the port interfaces the account lifecycle
domain depends on.
"""

from dominium.foundation.domain.account_value_objects import (
    SPECIAL_STATUS_TIERS,
    Account,
    AccountRole,
    AdminLevel,
    IdentityRecord,
    PromoRedemption,
    SubscriptionTier,
    normalize_email,
)
from dominium.foundation.domain.audit import AuditKind, AuditRecord
from dominium.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependencyStepError,
    DomainError,
    IdentityDeletionExhaustedError,
    InvalidStateTransitionError,
    NotFoundError,
    ProtectedResourceError,
    ValidationError,
    WrongAccountRoleError,
)
from dominium.foundation.domain.permissions import (
    Capability,
    PermissionSet,
    ScopeKind,
    TerritoryScope,
)
from dominium.foundation.domain.ports import (
    AccountStorePort,
    AuditLogPort,
    IdentityProviderError,
    IdentityProviderPort,
    PromoCounterStorePort,
)
from dominium.foundation.domain.principal import Principal, PrincipalType

__all__ = [
    "SPECIAL_STATUS_TIERS",
    "Account",
    "AccountRole",
    "AccountStorePort",
    "AdminLevel",
    "AuditKind",
    "AuditLogPort",
    "AuditRecord",
    "AuthenticationError",
    "AuthorizationError",
    "Capability",
    "ConflictError",
    "DependencyStepError",
    "DomainError",
    "IdentityDeletionExhaustedError",
    "IdentityProviderError",
    "IdentityProviderPort",
    "IdentityRecord",
    "InvalidStateTransitionError",
    "NotFoundError",
    "PermissionSet",
    "Principal",
    "PrincipalType",
    "PromoCounterStorePort",
    "PromoRedemption",
    "ProtectedResourceError",
    "ScopeKind",
    "SubscriptionTier",
    "TerritoryScope",
    "ValidationError",
    "WrongAccountRoleError",
    "normalize_email",
]

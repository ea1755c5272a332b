"""Dominium Accounts -- account deletion, privilege resolution and agent badges."""

from dominium.domain.accounts.audit import AuditTrail
from dominium.domain.accounts.cascade import (
    DEFAULT_CASCADE_MANIFEST,
    CascadeCategory,
    CascadeContext,
    CascadeStep,
    owned_table_step,
    validate_manifest,
)
from dominium.domain.accounts.counters import CounterAdjuster
from dominium.domain.accounts.deletion import (
    DeletionOrchestrator,
    DeletionPhase,
    DeletionResult,
    DeletionStatus,
    StepFailure,
    aggregate_status,
)
from dominium.domain.accounts.identity_removal import (
    IdentityDeletionLayer,
    IdentityDeletionOutcome,
    IdentityRemover,
    IdentityRetryPolicy,
)
from dominium.domain.accounts.permissions import (
    DELETE_ACCOUNT,
    SET_PREMIUM_AGENT,
    VERIFY_AGENT,
    OperationRequirement,
    PermissionResolver,
    authorize_actor,
    authorize_territory,
    can_perform,
)
from dominium.domain.accounts.policy import ProtectedAccountPolicy
from dominium.domain.accounts.settings import AccountsSettings, get_accounts_settings
from dominium.domain.accounts.verification import (
    AgentBadgeState,
    AgentVerificationGate,
    BadgeChange,
    VerificationAction,
    VerificationStatus,
)

__all__ = [
    "DEFAULT_CASCADE_MANIFEST",
    "DELETE_ACCOUNT",
    "SET_PREMIUM_AGENT",
    "VERIFY_AGENT",
    "AccountsSettings",
    "AgentBadgeState",
    "AgentVerificationGate",
    "AuditTrail",
    "BadgeChange",
    "CascadeCategory",
    "CascadeContext",
    "CascadeStep",
    "CounterAdjuster",
    "DeletionOrchestrator",
    "DeletionPhase",
    "DeletionResult",
    "DeletionStatus",
    "IdentityDeletionLayer",
    "IdentityDeletionOutcome",
    "IdentityRemover",
    "IdentityRetryPolicy",
    "OperationRequirement",
    "PermissionResolver",
    "ProtectedAccountPolicy",
    "StepFailure",
    "VerificationAction",
    "VerificationStatus",
    "aggregate_status",
    "authorize_actor",
    "authorize_territory",
    "can_perform",
    "get_accounts_settings",
    "owned_table_step",
    "validate_manifest",
]

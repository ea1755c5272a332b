"""Agent trust badges: verified-agent and premium-agent.

Badge changes pass through the same gate as account deletion: super admins
act anywhere, owner admins only inside their own territory, and the
protected account is never modified. The target must be an agent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from dominium.domain.accounts.permissions import (
    SET_PREMIUM_AGENT,
    VERIFY_AGENT,
    authorize_actor,
    authorize_territory,
    can_perform,
)
from dominium.foundation.domain.account_value_objects import AccountRole
from dominium.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ProtectedResourceError,
    WrongAccountRoleError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from dominium.domain.accounts.audit import AuditTrail
    from dominium.domain.accounts.permissions import (
        OperationRequirement,
        PermissionResolver,
    )
    from dominium.domain.accounts.policy import ProtectedAccountPolicy
    from dominium.foundation.domain.account_value_objects import Account
    from dominium.foundation.domain.ports.account_store import AccountStorePort
    from dominium.foundation.domain.ports.identity_provider import IdentityProviderPort
    from dominium.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)


class VerificationAction(StrEnum):
    """Badge action requested by an admin."""

    VERIFY = "verify"
    REVOKE = "revoke"


@dataclass(frozen=True, slots=True)
class ActorSummary:
    """Identity of the admin who performed a change."""

    id: str
    name: str
    email: str | None

    @classmethod
    def of(cls, account: Account) -> ActorSummary:
        return cls(id=account.id, name=account.display_name, email=account.email)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email}


@dataclass(frozen=True, slots=True)
class AgentBadgeState:
    """Badge state of an agent account."""

    id: str
    name: str
    email: str | None
    is_verified_agent: bool
    verified_by: str | None
    verified_by_name: str | None
    verified_at: datetime | None
    is_premium_agent: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "isVerifiedAgent": self.is_verified_agent,
            "verifiedBy": self.verified_by,
            "verifiedByName": self.verified_by_name,
            "verifiedAt": self.verified_at.isoformat() if self.verified_at else None,
            "isPremiumAgent": self.is_premium_agent,
        }


@dataclass(frozen=True, slots=True)
class VerificationStatus:
    """Current badge state plus whether the requesting admin may toggle it."""

    agent: AgentBadgeState
    can_toggle: bool


@dataclass(frozen=True, slots=True)
class BadgeChange:
    """Result of a badge mutation."""

    agent: AgentBadgeState
    actor: ActorSummary
    action: str


class AgentVerificationGate:
    """Authorization-gated badge reads and mutations on agent accounts."""

    def __init__(
        self,
        store: AccountStorePort,
        resolver: PermissionResolver,
        policy: ProtectedAccountPolicy,
        audit: AuditTrail,
        clock: Callable[[], datetime] | None = None,
        identity: IdentityProviderPort | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._policy = policy
        self._audit = audit
        self._clock = clock or (lambda: datetime.now(UTC))
        self._identity = identity

    def status(self, actor: Principal | None, agent_id: str) -> VerificationStatus:
        """Return an agent's badge state and whether ``actor`` may toggle it.

        Raises:
            AuthenticationError: No actor.
            AuthorizationError: Actor is not an admin.
            NotFoundError: Agent does not exist.
            WrongAccountRoleError: Target is not an agent.
        """
        actor_account = self._load_actor(actor)
        if not actor_account.is_admin and not self._policy.matches(actor_account.email):
            raise AuthorizationError(
                "Admin access required",
                context={"actor_id": actor_account.id},
            )
        target = self._load_agent(agent_id)
        permissions = self._resolver.resolve_for(actor_account)
        can_toggle = can_perform(
            permissions, target.territory_id, VERIFY_AGENT
        ) and not self._is_protected(target)
        return VerificationStatus(agent=self._badge_state(target), can_toggle=can_toggle)

    def apply(
        self,
        actor: Principal | None,
        agent_id: str,
        action: VerificationAction,
    ) -> BadgeChange:
        """Grant or revoke the verified-agent badge.

        Raises:
            AuthenticationError: No actor.
            AuthorizationError: Insufficient privilege or territory mismatch.
            NotFoundError: Agent does not exist.
            ProtectedResourceError: Target is the protected account.
            WrongAccountRoleError: Target is not an agent.
        """
        actor_account, _target = self._authorize(actor, agent_id, VERIFY_AGENT)
        verifying = action == VerificationAction.VERIFY
        updated = self._store.update_verification(
            agent_id,
            is_verified=verifying,
            verified_by=actor_account.id if verifying else None,
            verified_at=self._clock() if verifying else None,
        )
        self._audit.record_badge_change(
            VERIFY_AGENT.name,
            actor_account.id,
            agent_id,
            outcome="verified" if verifying else "revoked",
            details={"is_verified_agent": updated.is_verified_agent},
        )
        logger.info(
            "agent_verification_changed",
            extra={
                "actor_id": actor_account.id,
                "agent_id": agent_id,
                "action": action.value,
            },
        )
        return BadgeChange(
            agent=self._badge_state(updated),
            actor=ActorSummary.of(actor_account),
            action=action.value,
        )

    def set_premium(
        self,
        actor: Principal | None,
        agent_id: str,
        is_premium: bool,
    ) -> BadgeChange:
        """Set or clear the premium-agent badge. Same gate as :meth:`apply`."""
        actor_account, _target = self._authorize(actor, agent_id, SET_PREMIUM_AGENT)
        updated = self._store.update_premium(agent_id, is_premium=is_premium)
        self._audit.record_badge_change(
            SET_PREMIUM_AGENT.name,
            actor_account.id,
            agent_id,
            outcome="premium_granted" if is_premium else "premium_revoked",
            details={"is_premium_agent": updated.is_premium_agent},
        )
        logger.info(
            "agent_premium_changed",
            extra={
                "actor_id": actor_account.id,
                "agent_id": agent_id,
                "is_premium_agent": is_premium,
            },
        )
        return BadgeChange(
            agent=self._badge_state(updated),
            actor=ActorSummary.of(actor_account),
            action="premium" if is_premium else "standard",
        )

    def _authorize(
        self,
        actor: Principal | None,
        agent_id: str,
        requirement: OperationRequirement,
    ) -> tuple[Account, Account]:
        actor_id = actor.account_id if actor is not None else None
        try:
            actor_account = self._load_actor(actor)
            permissions = self._resolver.resolve_for(actor_account)
            authorize_actor(permissions, requirement)
            target = self._store.find_by_id(agent_id)
            if target is None:
                raise NotFoundError("Agent", agent_id)
            if self._is_protected(target):
                raise ProtectedResourceError(requirement.name, agent_id)
            if target.role != AccountRole.AGENT:
                raise WrongAccountRoleError(
                    agent_id,
                    expected=AccountRole.AGENT.value,
                    actual=target.role.value,
                )
            authorize_territory(permissions, target.territory_id, requirement)
        except DomainError as exc:
            self._audit.record_decision(
                requirement.name,
                actor_id,
                agent_id,
                granted=False,
                reason=exc.error_code,
            )
            raise
        self._audit.record_decision(requirement.name, actor_account.id, agent_id, granted=True)
        return actor_account, target

    def _load_actor(self, actor: Principal | None) -> Account:
        if actor is None:
            raise AuthenticationError(
                "Authentication is required to manage agents",
                auth_error="invalid_request",
            )
        account = self._store.find_by_id(actor.account_id)
        if account is None:
            raise AuthorizationError(
                "Acting account has no profile",
                context={"actor_id": actor.account_id},
            )
        return account

    def _load_agent(self, agent_id: str) -> Account:
        target = self._store.find_by_id(agent_id)
        if target is None:
            raise NotFoundError("Agent", agent_id)
        if target.role != AccountRole.AGENT:
            raise WrongAccountRoleError(
                agent_id,
                expected=AccountRole.AGENT.value,
                actual=target.role.value,
            )
        return target

    def _is_protected(self, target: Account) -> bool:
        if target.email or self._identity is None:
            return self._policy.matches(target.email)
        # Profile without an email: fall back to the identity record's.
        identity = self._identity.find_by_id(target.id)
        return identity is not None and self._policy.matches(identity.email)

    def _badge_state(self, agent: Account) -> AgentBadgeState:
        verified_by_name: str | None = None
        if agent.verified_by:
            verifier = self._store.find_by_id(agent.verified_by)
            if verifier is not None:
                verified_by_name = verifier.display_name
        return AgentBadgeState(
            id=agent.id,
            name=agent.display_name,
            email=agent.email,
            is_verified_agent=agent.is_verified_agent,
            verified_by=agent.verified_by,
            verified_by_name=verified_by_name,
            verified_at=agent.verified_at,
            is_premium_agent=agent.is_premium_agent,
        )

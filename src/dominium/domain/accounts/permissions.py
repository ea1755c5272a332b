"""Permission resolution for account-management operations.

Every gated operation (account deletion, agent verification, premium badge)
goes through this module. Handlers declare only their minimum requirement
as an :class:`OperationRequirement`; the role/level/territory rules live here
and nowhere else.

Rules:
    - protected identity or ``super`` level: {view, edit, delete} over all territories
    - ``owner`` level: {view, edit} over the actor's own territory
      (no territory assigned means no account is in scope)
    - anything else: nothing

Deletion extends a narrower grant on top of the general set: an owner may
delete, but only inside their territory. That grant is declared on the
requirement, not hard-coded in the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from dominium.foundation.domain.account_value_objects import AdminLevel
from dominium.foundation.domain.exceptions import AuthorizationError
from dominium.foundation.domain.permissions import (
    Capability,
    PermissionSet,
    TerritoryScope,
)

if TYPE_CHECKING:
    from dominium.domain.accounts.policy import ProtectedAccountPolicy
    from dominium.foundation.domain.account_value_objects import Account


_FULL_CAPABILITIES = frozenset({Capability.VIEW, Capability.EDIT, Capability.DELETE})
_OWNER_CAPABILITIES = frozenset({Capability.VIEW, Capability.EDIT})


@dataclass(frozen=True, slots=True)
class OperationRequirement:
    """Minimum privilege an operation demands.

    Attributes:
        name: Operation name used in errors and audit records.
        capability: Capability the actor must hold.
        owner_territory_grant: When True, owner-level actors are admitted even
            without the capability, restricted to their own territory.
    """

    name: str
    capability: Capability
    owner_territory_grant: bool = False


DELETE_ACCOUNT = OperationRequirement(
    name="delete_account",
    capability=Capability.DELETE,
    owner_territory_grant=True,
)
VERIFY_AGENT = OperationRequirement(name="verify_agent", capability=Capability.EDIT)
SET_PREMIUM_AGENT = OperationRequirement(name="set_premium_agent", capability=Capability.EDIT)


class PermissionResolver:
    """Computes an actor's PermissionSet. Pure and store-free.

    Attributes:
        _policy: Protected account policy; the protected identity resolves
            to full capabilities as an actor.
    """

    def __init__(self, policy: ProtectedAccountPolicy) -> None:
        self._policy = policy

    def resolve(
        self,
        actor_email: str | None,
        actor_admin_level: AdminLevel,
        actor_territory_id: str | None,
    ) -> PermissionSet:
        """Resolve the capability set and territory scope of an actor.

        Args:
            actor_email: Email of the acting account.
            actor_admin_level: Admin level of the acting account.
            actor_territory_id: Territory of the acting account, if any.

        Returns:
            A fresh PermissionSet.
        """
        if self._policy.matches(actor_email) or actor_admin_level == AdminLevel.SUPER:
            return PermissionSet(
                capabilities=_FULL_CAPABILITIES,
                scope=TerritoryScope.all_territories(),
                admin_level=actor_admin_level,
            )
        if actor_admin_level == AdminLevel.OWNER:
            scope = (
                TerritoryScope.single(actor_territory_id)
                if actor_territory_id
                else TerritoryScope.none()
            )
            return PermissionSet(
                capabilities=_OWNER_CAPABILITIES,
                scope=scope,
                admin_level=actor_admin_level,
            )
        return PermissionSet(admin_level=actor_admin_level)

    def resolve_for(self, account: Account) -> PermissionSet:
        """Resolve permissions for a loaded actor account."""
        return self.resolve(account.email, account.admin_level, account.territory_id)


def _actor_admitted(permissions: PermissionSet, requirement: OperationRequirement) -> bool:
    if permissions.has(requirement.capability):
        return True
    return requirement.owner_territory_grant and permissions.admin_level == AdminLevel.OWNER


def authorize_actor(permissions: PermissionSet, requirement: OperationRequirement) -> None:
    """Check the actor's privilege tier against an operation's requirement.

    Raises:
        AuthorizationError: If the actor is not admitted.
    """
    if not _actor_admitted(permissions, requirement):
        raise AuthorizationError(
            "Only super or owner admins can perform this operation",
            context={
                "operation": requirement.name,
                "admin_level": str(permissions.admin_level),
            },
        )


def authorize_territory(
    permissions: PermissionSet,
    target_territory_id: str | None,
    requirement: OperationRequirement,
) -> None:
    """Check that the target's territory lies inside the actor's scope.

    Raises:
        AuthorizationError: If the target is out of scope.
    """
    if not permissions.scope.covers(target_territory_id):
        raise AuthorizationError(
            "You can only manage accounts in your own territory",
            context={
                "operation": requirement.name,
                "scope": str(permissions.scope.kind),
                "actor_territory_id": permissions.scope.territory_id,
                "target_territory_id": target_territory_id,
            },
        )


def can_perform(
    permissions: PermissionSet,
    target_territory_id: str | None,
    requirement: OperationRequirement,
) -> bool:
    """Non-raising combination of :func:`authorize_actor` and :func:`authorize_territory`."""
    return _actor_admitted(permissions, requirement) and permissions.scope.covers(
        target_territory_id
    )

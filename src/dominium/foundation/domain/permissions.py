"""Permission value objects: capabilities and territory scopes.

A PermissionSet is derived, never stored. It is computed fresh from the
acting account on every request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from dominium.foundation.domain.account_value_objects import AdminLevel


class Capability(StrEnum):
    """Capability over other accounts."""

    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"


class ScopeKind(StrEnum):
    """Kind of territory scope."""

    ALL = "all"
    SINGLE = "single"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class TerritoryScope:
    """Territories a permission set extends to.

    Example:
        >>> TerritoryScope.single("GY").covers("GY")
        True
        >>> TerritoryScope.single("GY").covers("JM")
        False
        >>> TerritoryScope.all_territories().covers(None)
        True
    """

    kind: ScopeKind
    territory_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind == ScopeKind.SINGLE and not self.territory_id:
            msg = "Single-territory scope requires a territory_id"
            raise ValueError(msg)
        if self.kind != ScopeKind.SINGLE and self.territory_id is not None:
            msg = f"Scope '{self.kind}' does not carry a territory_id"
            raise ValueError(msg)

    @classmethod
    def all_territories(cls) -> TerritoryScope:
        return cls(ScopeKind.ALL)

    @classmethod
    def single(cls, territory_id: str) -> TerritoryScope:
        return cls(ScopeKind.SINGLE, territory_id)

    @classmethod
    def none(cls) -> TerritoryScope:
        return cls(ScopeKind.NONE)

    @property
    def is_unrestricted(self) -> bool:
        return self.kind == ScopeKind.ALL

    def covers(self, territory_id: str | None) -> bool:
        """Whether an account in ``territory_id`` falls inside this scope.

        An unknown territory (None) is only covered by the ALL scope.
        """
        if self.kind == ScopeKind.ALL:
            return True
        if self.kind == ScopeKind.SINGLE:
            return territory_id is not None and territory_id == self.territory_id
        return False


@dataclass(frozen=True, slots=True)
class PermissionSet:
    """Capabilities an actor holds over accounts, bounded by a territory scope."""

    capabilities: frozenset[Capability] = field(default_factory=frozenset)
    scope: TerritoryScope = field(default_factory=TerritoryScope.none)
    admin_level: AdminLevel = AdminLevel.NONE

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def is_empty(self) -> bool:
        return not self.capabilities

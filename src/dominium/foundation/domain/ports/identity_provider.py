"""Port interface for the identity (credential) provider.

Identity records are keyed by the same id as account profiles. Deletion
may fail transiently, for example while the identity still has active
sessions, so adapters raise :class:`IdentityProviderError` and leave
retry decisions to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dominium.foundation.domain.account_value_objects import IdentityRecord


class IdentityProviderError(RuntimeError):
    """An identity provider call failed.

    Attributes:
        operation: Provider operation that failed (e.g., "delete_identity").
        status_code: HTTP status returned by the provider, when there was one.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


@runtime_checkable
class IdentityProviderPort(Protocol):
    """Port for identity lookup, session invalidation and deletion."""

    def find_by_id(self, identity_id: str) -> IdentityRecord | None:
        """Return the identity record, or None if absent."""
        ...

    def exists(self, identity_id: str) -> bool:
        """Whether the identity record exists."""
        ...

    def delete_identity(self, identity_id: str) -> None:
        """Delete the identity. Absent identities are a no-op.

        Raises:
            IdentityProviderError: If the provider refuses the deletion.
        """
        ...

    def invalidate_sessions(self, identity_id: str) -> None:
        """Revoke every session and refresh token of the identity."""
        ...

    def force_delete_identity(self, identity_id: str) -> None:
        """Hard-delete the identity, bypassing soft-delete semantics."""
        ...

"""In-memory identity provider.

Models the one failure mode that matters for deletion: an identity with
active sessions refuses a plain delete until its sessions are revoked.
Tests can also queue failures per operation with :meth:`fail`.
"""

from __future__ import annotations

import threading
from collections import defaultdict

from dominium.foundation.domain.account_value_objects import IdentityRecord
from dominium.foundation.domain.ports.identity_provider import IdentityProviderError


class InMemoryIdentityProvider:
    """Dict-backed IdentityProviderPort."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._identities: dict[str, IdentityRecord] = {}
        self._sessions: dict[str, int] = {}
        self._queued_failures: dict[str, int] = defaultdict(int)
        self.calls: list[tuple[str, str]] = []

    def add_identity(self, identity_id: str, email: str | None = None, sessions: int = 0) -> None:
        with self._lock:
            self._identities[identity_id] = IdentityRecord(id=identity_id, email=email)
            self._sessions[identity_id] = sessions

    def fail(self, operation: str, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` raise IdentityProviderError."""
        with self._lock:
            self._queued_failures[operation] += times

    def active_sessions(self, identity_id: str) -> int:
        with self._lock:
            return self._sessions.get(identity_id, 0)

    def find_by_id(self, identity_id: str) -> IdentityRecord | None:
        self._enter("find_by_id", identity_id)
        with self._lock:
            return self._identities.get(identity_id)

    def exists(self, identity_id: str) -> bool:
        self._enter("exists", identity_id)
        with self._lock:
            return identity_id in self._identities

    def delete_identity(self, identity_id: str) -> None:
        self._enter("delete_identity", identity_id)
        with self._lock:
            if identity_id not in self._identities:
                return
            if self._sessions.get(identity_id, 0) > 0:
                raise IdentityProviderError(
                    "Identity has active sessions",
                    operation="delete_identity",
                    status_code=409,
                )
            self._remove(identity_id)

    def invalidate_sessions(self, identity_id: str) -> None:
        self._enter("invalidate_sessions", identity_id)
        with self._lock:
            if identity_id in self._sessions:
                self._sessions[identity_id] = 0

    def force_delete_identity(self, identity_id: str) -> None:
        self._enter("force_delete_identity", identity_id)
        with self._lock:
            self._remove(identity_id)

    def _remove(self, identity_id: str) -> None:
        self._identities.pop(identity_id, None)
        self._sessions.pop(identity_id, None)

    def _enter(self, operation: str, identity_id: str) -> None:
        with self._lock:
            self.calls.append((operation, identity_id))
            if self._queued_failures[operation] > 0:
                self._queued_failures[operation] -= 1
                raise IdentityProviderError(
                    f"Injected failure for {operation}",
                    operation=operation,
                    status_code=500,
                )

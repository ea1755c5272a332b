"""Audit record value object.

Audit records are immutable and append-only. One record is written per
authorization decision, one per deletion outcome and one per badge change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any
from uuid import uuid4


class AuditKind(StrEnum):
    """Kind of audited event."""

    AUTHORIZATION_DECISION = "authorization_decision"
    DELETION_OUTCOME = "deletion_outcome"
    VERIFICATION_CHANGE = "verification_change"


def _freeze(details: dict[str, Any] | None) -> MappingProxyType[str, Any]:
    return MappingProxyType(dict(details or {}))


@dataclass(frozen=True, slots=True)
class AuditRecord:
    """Structured audit entry.

    Attributes:
        kind: What was audited.
        operation: Operation name (e.g., "delete_account", "verify_agent").
        actor_id: Account id of the acting principal, None if unauthenticated.
        target_id: Account id of the target.
        granted: Decision for authorization records, None otherwise.
        outcome: Terminal status or decision label.
        reason: Error code or short reason for denials.
        details: Read-only structured payload.
        occurred_at: UTC timestamp.
        record_id: Unique record id.
    """

    kind: AuditKind
    operation: str
    actor_id: str | None
    target_id: str
    granted: bool | None = None
    outcome: str | None = None
    reason: str | None = None
    details: MappingProxyType[str, Any] = field(default_factory=lambda: _freeze(None))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    record_id: str = field(default_factory=lambda: str(uuid4()))

    @classmethod
    def create(
        cls,
        kind: AuditKind,
        operation: str,
        actor_id: str | None,
        target_id: str,
        *,
        granted: bool | None = None,
        outcome: str | None = None,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditRecord:
        """Build a record, copying ``details`` into a read-only mapping."""
        return cls(
            kind=kind,
            operation=operation,
            actor_id=actor_id,
            target_id=target_id,
            granted=granted,
            outcome=outcome,
            reason=reason,
            details=_freeze(details),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for serialization."""
        return {
            "record_id": self.record_id,
            "kind": str(self.kind),
            "operation": self.operation,
            "actor_id": self.actor_id,
            "target_id": self.target_id,
            "granted": self.granted,
            "outcome": self.outcome,
            "reason": self.reason,
            "details": dict(self.details),
            "occurred_at": self.occurred_at.isoformat(),
        }

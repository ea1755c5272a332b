"""Audit trail for account-management decisions and outcomes.

Wraps an :class:`AuditLogPort` sink. A failing sink is logged and never
changes the outcome of the audited operation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dominium.foundation.application.context import request_context
from dominium.foundation.domain.audit import AuditKind, AuditRecord

if TYPE_CHECKING:
    from dominium.foundation.domain.ports.audit_log import AuditLogPort

logger = logging.getLogger(__name__)


class AuditTrail:
    """Builds audit records and appends them to the configured sink."""

    def __init__(self, sink: AuditLogPort) -> None:
        self._sink = sink

    def record_decision(
        self,
        operation: str,
        actor_id: str | None,
        target_id: str,
        *,
        granted: bool,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditRecord:
        """Record one authorization decision, granted or denied."""
        record = AuditRecord.create(
            AuditKind.AUTHORIZATION_DECISION,
            operation,
            actor_id,
            target_id,
            granted=granted,
            outcome="granted" if granted else "denied",
            reason=reason,
            details=self._with_correlation(details),
        )
        self._append(record)
        return record

    def record_deletion(
        self,
        actor_id: str | None,
        target_id: str,
        *,
        status: str,
        details: dict[str, Any],
    ) -> AuditRecord:
        """Record the outcome of a deletion run."""
        record = AuditRecord.create(
            AuditKind.DELETION_OUTCOME,
            "delete_account",
            actor_id,
            target_id,
            outcome=status,
            details=self._with_correlation(details),
        )
        self._append(record)
        return record

    def record_badge_change(
        self,
        operation: str,
        actor_id: str,
        target_id: str,
        *,
        outcome: str,
        details: dict[str, Any] | None = None,
    ) -> AuditRecord:
        """Record a verified or premium badge change."""
        record = AuditRecord.create(
            AuditKind.VERIFICATION_CHANGE,
            operation,
            actor_id,
            target_id,
            outcome=outcome,
            details=self._with_correlation(details),
        )
        self._append(record)
        return record

    def _append(self, record: AuditRecord) -> None:
        try:
            self._sink.append(record)
        except Exception:
            logger.exception(
                "audit_append_failed",
                extra={
                    "record_id": record.record_id,
                    "kind": record.kind.value,
                    "operation": record.operation,
                },
            )

    @staticmethod
    def _with_correlation(details: dict[str, Any] | None) -> dict[str, Any]:
        enriched = dict(details or {})
        ctx = request_context.get()
        if ctx is not None:
            enriched.setdefault("correlation_id", ctx.correlation_id)
        return enriched

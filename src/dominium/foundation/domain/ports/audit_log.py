"""Port interface for the audit log sink."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dominium.foundation.domain.audit import AuditRecord


@runtime_checkable
class AuditLogPort(Protocol):
    """Append-only sink for audit records.

    Example:
        >>> class ListAuditLog:
        ...     def __init__(self) -> None:
        ...         self.records = []
        ...
        ...     def append(self, record) -> None:
        ...         self.records.append(record)
        >>> isinstance(ListAuditLog(), AuditLogPort)
        True
    """

    def append(self, record: AuditRecord) -> None:
        """Persist one record. Records are never updated or deleted."""
        ...

"""Audit log sink that emits records as structured log events.

Every record becomes one ``audit_record`` event on the ``dominium.audit``
logger, so a log shipper can route audit lines separately from
application logs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from dominium.foundation.domain.audit import AuditRecord

AUDIT_LOGGER_NAME = "dominium.audit"


class StructlogAuditLog:
    """AuditLogPort writing to a dedicated structlog logger."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or structlog.stdlib.get_logger(AUDIT_LOGGER_NAME)

    def append(self, record: AuditRecord) -> None:
        self._logger.info("audit_record", **record.to_dict())

"""Append-only SQL audit log."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from sqlalchemy import text

if TYPE_CHECKING:
    from sqlalchemy.orm import Session, sessionmaker

    from dominium.foundation.domain.audit import AuditRecord

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS account_audit_log (
    record_id VARCHAR(64) PRIMARY KEY,
    kind VARCHAR(32) NOT NULL,
    operation VARCHAR(64) NOT NULL,
    actor_id VARCHAR(64),
    target_id VARCHAR(64) NOT NULL,
    granted BOOLEAN,
    outcome VARCHAR(32),
    reason VARCHAR(64),
    details TEXT NOT NULL,
    occurred_at TIMESTAMP NOT NULL
)
"""

_INSERT_SQL = """
INSERT INTO account_audit_log
    (record_id, kind, operation, actor_id, target_id, granted, outcome, reason,
     details, occurred_at)
VALUES
    (:record_id, :kind, :operation, :actor_id, :target_id, :granted, :outcome, :reason,
     :details, :occurred_at)
"""


class SqlAuditLog:
    """AuditLogPort writing one row per record to ``account_audit_log``."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def ensure_table_exists(self) -> None:
        """Create the audit table if it does not exist. Idempotent."""
        with self._session_factory() as session, session.begin():
            session.execute(text(_CREATE_TABLE_SQL))
        logger.info("account_audit_table_ensured")

    def append(self, record: AuditRecord) -> None:
        with self._session_factory() as session, session.begin():
            session.execute(
                text(_INSERT_SQL),
                {
                    "record_id": record.record_id,
                    "kind": record.kind.value,
                    "operation": record.operation,
                    "actor_id": record.actor_id,
                    "target_id": record.target_id,
                    "granted": record.granted,
                    "outcome": record.outcome,
                    "reason": record.reason,
                    "details": json.dumps(dict(record.details), default=str),
                    "occurred_at": record.occurred_at,
                },
            )

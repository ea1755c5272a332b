"""Dominium Infra Persistence -- database management and account store adapters."""

from dominium.infra.persistence.database import (
    DatabaseManager,
    DatabaseSettings,
    get_database_manager,
)
from dominium.infra.persistence.memory import InMemoryAccountStore, InMemoryAuditLog
from dominium.infra.persistence.sql_account_store import SqlAccountStore
from dominium.infra.persistence.sql_audit_log import SqlAuditLog
from dominium.infra.persistence.tables import OWNED_RECORD_TABLES

__all__ = [
    "OWNED_RECORD_TABLES",
    "DatabaseManager",
    "DatabaseSettings",
    "InMemoryAccountStore",
    "InMemoryAuditLog",
    "SqlAccountStore",
    "SqlAuditLog",
    "get_database_manager",
]

"""Wiring of the account lifecycle services.

:func:`build_services` assembles the policy, resolver, orchestrator and
verification gate over the configured backends. Tests and embedding
applications pass their own adapters instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dominium.domain.accounts.audit import AuditTrail
from dominium.domain.accounts.cascade import DEFAULT_CASCADE_MANIFEST
from dominium.domain.accounts.counters import CounterAdjuster
from dominium.domain.accounts.deletion import DeletionOrchestrator
from dominium.domain.accounts.identity_removal import IdentityRemover, IdentityRetryPolicy
from dominium.domain.accounts.permissions import PermissionResolver
from dominium.domain.accounts.policy import ProtectedAccountPolicy
from dominium.domain.accounts.verification import AgentVerificationGate
from dominium.infra.identity import (
    GoTrueIdentityProvider,
    InMemoryIdentityProvider,
    get_identity_settings,
)
from dominium.infra.observability import StructlogAuditLog
from dominium.infra.persistence import (
    InMemoryAccountStore,
    SqlAccountStore,
    SqlAuditLog,
    get_database_manager,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from dominium.domain.accounts.cascade import CascadeStep
    from dominium.domain.accounts.settings import AccountsSettings
    from dominium.foundation.domain.ports.account_store import AccountStorePort
    from dominium.foundation.domain.ports.audit_log import AuditLogPort
    from dominium.foundation.domain.ports.identity_provider import IdentityProviderPort
    from dominium.foundation.domain.ports.promo_counters import PromoCounterStorePort
    from dominium.infra.identity.settings import IdentityProviderSettings
    from dominium.infra.persistence.database import DatabaseManager

logger = logging.getLogger(__name__)


@dataclass
class AccountsServices:
    """Everything the accounts router needs, plus startup/shutdown callbacks.

    Attributes:
        policy: Protected account policy.
        resolver: Permission resolver.
        store: Account store.
        identity_provider: Identity provider.
        audit_log: Audit sink.
        deletion: Deletion orchestrator.
        verification: Agent verification gate.
        startup: Callables run once when the app starts (table creation).
        shutdown: Callables run once when the app stops (client/pool release).
        health_checks: Named callables raising on an unhealthy dependency.
    """

    policy: ProtectedAccountPolicy
    resolver: PermissionResolver
    store: AccountStorePort
    identity_provider: IdentityProviderPort
    audit_log: AuditLogPort
    deletion: DeletionOrchestrator
    verification: AgentVerificationGate
    startup: list[Callable[[], Any]] = field(default_factory=list)
    shutdown: list[Callable[[], Any]] = field(default_factory=list)
    health_checks: dict[str, Callable[[], Any]] = field(default_factory=dict)


def build_services(
    settings: AccountsSettings,
    *,
    store: AccountStorePort | None = None,
    counter_store: PromoCounterStorePort | None = None,
    identity_provider: IdentityProviderPort | None = None,
    audit_log: AuditLogPort | None = None,
    database_manager: DatabaseManager | None = None,
    identity_settings: IdentityProviderSettings | None = None,
    manifest: tuple[CascadeStep, ...] = DEFAULT_CASCADE_MANIFEST,
) -> AccountsServices:
    """Assemble the services over explicit adapters or configured backends.

    The store doubles as the promo counter store unless ``counter_store``
    is given.

    Raises:
        ValueError: The gotrue identity backend is selected but not configured.
    """
    startup: list[Callable[[], Any]] = []
    shutdown: list[Callable[[], Any]] = []
    health_checks: dict[str, Callable[[], Any]] = {}

    if settings.store_backend == "sql" and (store is None or audit_log is None):
        manager = database_manager or get_database_manager()
        session_factory = manager.get_sync_session_factory()
        if store is None:
            sql_store = SqlAccountStore(session_factory)
            startup.append(sql_store.ensure_table_exists)
            store = sql_store
        if audit_log is None:
            sql_audit = SqlAuditLog(session_factory)
            startup.append(sql_audit.ensure_table_exists)
            audit_log = sql_audit
        health_checks["database"] = sql_store_ping(manager)
        shutdown.append(manager.dispose)

    if store is None:
        store = InMemoryAccountStore()
    if audit_log is None:
        audit_log = StructlogAuditLog()

    if counter_store is None:
        counter_store = store  # type: ignore[assignment]

    if identity_provider is None:
        identity_provider = _build_identity_provider(
            settings,
            identity_settings or get_identity_settings(),
            shutdown,
        )

    policy = ProtectedAccountPolicy(settings.protected_email)
    if policy.email is None:
        logger.warning("protected_account_not_configured")
    resolver = PermissionResolver(policy)
    audit = AuditTrail(audit_log)
    remover = IdentityRemover(
        identity_provider,
        IdentityRetryPolicy(
            max_attempts_per_layer=settings.identity_max_attempts_per_layer,
            backoff_seconds=settings.identity_backoff_seconds,
            backoff_multiplier=settings.identity_backoff_multiplier,
        ),
    )
    counters = CounterAdjuster(counter_store, max_attempts=settings.counter_max_attempts)

    deletion = DeletionOrchestrator(
        store=store,
        identity=identity_provider,
        identity_remover=remover,
        counters=counters,
        resolver=resolver,
        policy=policy,
        audit=audit,
        manifest=manifest,
    )
    verification = AgentVerificationGate(
        store, resolver, policy, audit, identity=identity_provider
    )

    return AccountsServices(
        policy=policy,
        resolver=resolver,
        store=store,
        identity_provider=identity_provider,
        audit_log=audit_log,
        deletion=deletion,
        verification=verification,
        startup=startup,
        shutdown=shutdown,
        health_checks=health_checks,
    )


def sql_store_ping(manager: DatabaseManager) -> Callable[[], None]:
    """Health check issuing ``SELECT 1`` on the manager's engine."""
    from sqlalchemy import text

    def _ping() -> None:
        with manager.get_sync_engine().connect() as conn:
            conn.execute(text("SELECT 1"))

    return _ping


def _build_identity_provider(
    settings: AccountsSettings,
    identity_settings: IdentityProviderSettings,
    shutdown: list[Callable[[], Any]],
) -> IdentityProviderPort:
    if settings.identity_backend == "gotrue":
        if not identity_settings.is_configured():
            msg = (
                "ACCOUNTS_IDENTITY_BACKEND=gotrue requires IDENTITY_BASE_URL "
                "and IDENTITY_SERVICE_ROLE_KEY"
            )
            raise ValueError(msg)
        provider = GoTrueIdentityProvider(
            identity_settings.base_url,
            identity_settings.service_role_key,
            timeout=identity_settings.timeout,
        )
        shutdown.append(provider.close)
        return provider
    return InMemoryIdentityProvider()

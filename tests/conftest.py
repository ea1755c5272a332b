"""Shared fixtures for the dominium test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient

from dominium.domain.accounts.app import create_accounts_app
from dominium.domain.accounts.audit import AuditTrail
from dominium.domain.accounts.counters import CounterAdjuster
from dominium.domain.accounts.deletion import DeletionOrchestrator
from dominium.domain.accounts.identity_removal import IdentityRemover
from dominium.domain.accounts.permissions import PermissionResolver
from dominium.domain.accounts.policy import ProtectedAccountPolicy
from dominium.domain.accounts.services import build_services
from dominium.domain.accounts.settings import AccountsSettings
from dominium.domain.accounts.verification import AgentVerificationGate
from dominium.foundation.domain.account_value_objects import (
    Account,
    AccountRole,
    AdminLevel,
    SubscriptionTier,
)
from dominium.foundation.domain.principal import Principal
from dominium.infra.auth.settings import AuthSettings
from dominium.infra.fastapi.settings import AppSettings
from dominium.infra.identity.memory import InMemoryIdentityProvider
from dominium.infra.persistence.memory import InMemoryAccountStore, InMemoryAuditLog

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from dominium.domain.accounts.services import AccountsServices

PROTECTED_EMAIL = "root@dominium.test"
JWT_SECRET = "unit-test-signing-secret-with-enough-bytes"
FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture()
def identity_provider() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture()
def audit_log() -> InMemoryAuditLog:
    return InMemoryAuditLog()


@pytest.fixture()
def policy() -> ProtectedAccountPolicy:
    return ProtectedAccountPolicy(PROTECTED_EMAIL)


@pytest.fixture()
def resolver(policy: ProtectedAccountPolicy) -> PermissionResolver:
    return PermissionResolver(policy)


@pytest.fixture()
def orchestrator(
    store: InMemoryAccountStore,
    identity_provider: InMemoryIdentityProvider,
    audit_log: InMemoryAuditLog,
    policy: ProtectedAccountPolicy,
    resolver: PermissionResolver,
) -> DeletionOrchestrator:
    return DeletionOrchestrator(
        store=store,
        identity=identity_provider,
        identity_remover=IdentityRemover(identity_provider),
        counters=CounterAdjuster(store),
        resolver=resolver,
        policy=policy,
        audit=AuditTrail(audit_log),
    )


@pytest.fixture()
def gate(
    store: InMemoryAccountStore,
    audit_log: InMemoryAuditLog,
    policy: ProtectedAccountPolicy,
    resolver: PermissionResolver,
    identity_provider: InMemoryIdentityProvider,
) -> AgentVerificationGate:
    return AgentVerificationGate(
        store,
        resolver,
        policy,
        AuditTrail(audit_log),
        clock=lambda: FIXED_NOW,
        identity=identity_provider,
    )


@pytest.fixture()
def add_account(
    store: InMemoryAccountStore,
    identity_provider: InMemoryIdentityProvider,
) -> Callable[..., Account]:
    """Factory seeding a profile and its identity record."""

    def _add(
        account_id: str,
        *,
        email: str | None = None,
        role: AccountRole = AccountRole.BUYER,
        admin_level: AdminLevel = AdminLevel.NONE,
        territory_id: str | None = None,
        subscription_tier: SubscriptionTier = SubscriptionTier.FREE,
        sessions: int = 0,
        with_identity: bool = True,
        **fields: Any,
    ) -> Account:
        account = Account(
            id=account_id,
            email=email if email is not None else f"{account_id}@dominium.test",
            role=role,
            admin_level=admin_level,
            territory_id=territory_id,
            subscription_tier=subscription_tier,
            **fields,
        )
        store.add_account(account)
        if with_identity:
            identity_provider.add_identity(account_id, account.email, sessions=sessions)
        return account

    return _add


@pytest.fixture()
def super_admin(add_account: Callable[..., Account]) -> Account:
    return add_account(
        "super-1",
        role=AccountRole.ADMIN,
        admin_level=AdminLevel.SUPER,
        first_name="Sam",
        last_name="Super",
    )


@pytest.fixture()
def owner_gy(add_account: Callable[..., Account]) -> Account:
    return add_account(
        "owner-gy",
        role=AccountRole.ADMIN,
        admin_level=AdminLevel.OWNER,
        territory_id="GY",
        first_name="Olive",
        last_name="Owner",
    )


@pytest.fixture()
def protected_account(add_account: Callable[..., Account]) -> Account:
    return add_account(
        "root-1",
        email=PROTECTED_EMAIL,
        role=AccountRole.AGENT,
        admin_level=AdminLevel.SUPER,
    )


def principal_of(account: Account) -> Principal:
    return Principal(subject=account.id, account_id=account.id, email=account.email)


@pytest.fixture()
def as_principal() -> Callable[[Account], Principal]:
    return principal_of


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def services(
    store: InMemoryAccountStore,
    identity_provider: InMemoryIdentityProvider,
    audit_log: InMemoryAuditLog,
) -> AccountsServices:
    return build_services(
        AccountsSettings(protected_email=PROTECTED_EMAIL),
        store=store,
        identity_provider=identity_provider,
        audit_log=audit_log,
    )


@pytest.fixture()
def client(services: AccountsServices) -> Iterator[TestClient]:
    app = create_accounts_app(
        services,
        app_settings=AppSettings(title="Dominium Test"),
        auth_settings=AuthSettings(jwt_secret=JWT_SECRET),
        configure_observability=False,
    )
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def make_token() -> Callable[..., str]:
    """Factory issuing HS256 access tokens signed with the test secret."""

    def _make(
        sub: str,
        *,
        email: str | None = None,
        audience: str = "authenticated",
        expires_in: timedelta = timedelta(hours=1),
        secret: str = JWT_SECRET,
        **claims: Any,
    ) -> str:
        payload: dict[str, Any] = {
            "sub": sub,
            "aud": audience,
            "exp": datetime.now(UTC) + expires_in,
            "role": "authenticated",
            **claims,
        }
        if email is not None:
            payload["email"] = email
        return pyjwt.encode(payload, secret, algorithm="HS256")

    return _make


@pytest.fixture()
def auth_headers(make_token: Callable[..., str]) -> Callable[[Account], dict[str, str]]:
    def _headers(account: Account) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(account.id, email=account.email)}"}

    return _headers


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW

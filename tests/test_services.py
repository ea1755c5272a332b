"""Tests for service wiring and account lifecycle settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dominium.domain.accounts.services import build_services
from dominium.domain.accounts.settings import AccountsSettings
from dominium.infra.identity import GoTrueIdentityProvider, InMemoryIdentityProvider
from dominium.infra.identity.settings import IdentityProviderSettings
from dominium.infra.observability import StructlogAuditLog
from dominium.infra.persistence import InMemoryAccountStore, SqlAccountStore, SqlAuditLog
from dominium.infra.persistence.database import DatabaseManager, DatabaseSettings


@pytest.mark.unit
class TestAccountsSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for var in ("PROTECTED_EMAIL", "STORE_BACKEND", "IDENTITY_BACKEND"):
            monkeypatch.delenv(f"ACCOUNTS_{var}", raising=False)
        settings = AccountsSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.protected_email is None
        assert settings.store_backend == "memory"
        assert settings.identity_backend == "memory"
        assert settings.counter_max_attempts == 5

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ACCOUNTS_PROTECTED_EMAIL", "  Root@Dominium.TEST ")
        monkeypatch.setenv("ACCOUNTS_STORE_BACKEND", "sql")
        monkeypatch.setenv("ACCOUNTS_IDENTITY_MAX_ATTEMPTS_PER_LAYER", "3")
        settings = AccountsSettings(_env_file=None)  # type: ignore[call-arg]
        assert settings.protected_email == "root@dominium.test"
        assert settings.store_backend == "sql"
        assert settings.identity_max_attempts_per_layer == 3

    def test_blank_protected_email_is_unset(self) -> None:
        assert AccountsSettings(protected_email="   ").protected_email is None

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AccountsSettings(store_backend="mongo")  # type: ignore[arg-type]


@pytest.mark.unit
class TestBuildServices:
    def test_memory_defaults(self) -> None:
        services = build_services(
            AccountsSettings(protected_email="root@dominium.test"),
            identity_settings=IdentityProviderSettings(base_url="", service_role_key=""),
        )
        assert isinstance(services.store, InMemoryAccountStore)
        assert isinstance(services.identity_provider, InMemoryIdentityProvider)
        assert isinstance(services.audit_log, StructlogAuditLog)
        assert services.policy.email == "root@dominium.test"
        assert services.startup == []
        assert services.shutdown == []
        assert services.health_checks == {}

    def test_explicit_adapters_are_used(self) -> None:
        store = InMemoryAccountStore()
        identity = InMemoryIdentityProvider()
        services = build_services(AccountsSettings(), store=store, identity_provider=identity)
        assert services.store is store
        assert services.identity_provider is identity
        assert services.policy.email is None

    def test_gotrue_requires_configuration(self) -> None:
        with pytest.raises(ValueError, match="IDENTITY_BASE_URL"):
            build_services(
                AccountsSettings(identity_backend="gotrue"),
                identity_settings=IdentityProviderSettings(base_url="", service_role_key=""),
            )

    def test_gotrue_client_closed_on_shutdown(self) -> None:
        services = build_services(
            AccountsSettings(identity_backend="gotrue"),
            identity_settings=IdentityProviderSettings(
                base_url="https://auth.dominium.test/auth/v1",
                service_role_key="service-role-key",
            ),
        )
        assert isinstance(services.identity_provider, GoTrueIdentityProvider)
        assert services.shutdown == [services.identity_provider.close]

    def test_sql_backend(self) -> None:
        manager = DatabaseManager(DatabaseSettings(url_override="sqlite://"))
        services = build_services(
            AccountsSettings(store_backend="sql"),
            identity_provider=InMemoryIdentityProvider(),
            database_manager=manager,
        )
        try:
            assert isinstance(services.store, SqlAccountStore)
            assert isinstance(services.audit_log, SqlAuditLog)
            assert len(services.startup) == 2
            for hook in services.startup:
                hook()
            services.health_checks["database"]()
            assert services.shutdown == [manager.dispose]
        finally:
            manager.dispose()

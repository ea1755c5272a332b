"""HTTP tests for the accounts API through the full middleware stack."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from dominium.domain.accounts.app import _ensure_dev_actor, create_accounts_app
from dominium.foundation.domain.account_value_objects import (
    AccountRole,
    AdminLevel,
    SubscriptionTier,
)
from dominium.foundation.domain.audit import AuditKind
from dominium.infra.auth.dev_bypass import DEV_ACTOR_ID
from dominium.infra.auth.settings import AuthSettings
from dominium.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import FastAPI

    from dominium.domain.accounts.services import AccountsServices
    from dominium.foundation.domain.account_value_objects import Account
    from dominium.infra.identity.memory import InMemoryIdentityProvider
    from dominium.infra.persistence.memory import InMemoryAccountStore, InMemoryAuditLog

Headers = dict[str, str]

REQUEST_ID = "0b7a4c5e-2f1d-4a8b-9c3e-6d5f7a8b9c0d"


@pytest.mark.integration
class TestDeleteAccountEndpoint:
    def test_success(
        self,
        client: TestClient,
        store: InMemoryAccountStore,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        target = add_account("agent-1", role=AccountRole.AGENT)
        store.add_listing(target.id, media_count=2)
        store.add_favorite(target.id)

        response = client.delete(f"/accounts/{target.id}", headers=auth_headers(super_admin))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["deleted"]["listings"] == 1
        assert body["deleted"]["listingMedia"] == 2
        assert body["deleted"]["favorites"] == 1
        assert body["deleted"]["profile"] is True
        assert body["deleted"]["identity"] is True
        assert body["failures"] == []
        assert "x-request-id" in response.headers

    def test_special_status_reports_counter(
        self,
        client: TestClient,
        store: InMemoryAccountStore,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        target = add_account("founder-1", subscription_tier=SubscriptionTier.FOUNDING_MEMBER)
        store.add_redemption(target.id, "FOUNDERS")
        store.set_counter("FOUNDERS", 4)

        response = client.delete(f"/accounts/{target.id}", headers=auth_headers(super_admin))

        assert response.status_code == 200
        assert response.json()["specialStatus"] is True
        assert response.json()["counterAdjusted"] is True
        assert store.counter("FOUNDERS") == 3

    def test_partial_is_multi_status(
        self,
        client: TestClient,
        identity_provider: InMemoryIdentityProvider,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("agent-2", role=AccountRole.AGENT, sessions=1)
        identity_provider.fail("invalidate_sessions")
        identity_provider.fail("force_delete_identity")

        response = client.delete("/accounts/agent-2", headers=auth_headers(super_admin))

        assert response.status_code == 207
        body = response.json()
        assert body["status"] == "partial"
        assert body["failures"][0]["errorCode"] == "IDENTITY_DELETION_EXHAUSTED"

    def test_missing_token(self, client: TestClient) -> None:
        response = client.delete("/accounts/anyone")
        assert response.status_code == 401
        assert response.json()["error_code"] == "MISSING_TOKEN"
        assert "WWW-Authenticate" in response.headers

    def test_protected_account_refused(
        self,
        client: TestClient,
        store: InMemoryAccountStore,
        super_admin: Account,
        protected_account: Account,
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        response = client.delete(
            f"/accounts/{protected_account.id}", headers=auth_headers(super_admin)
        )

        assert response.status_code == 403
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["type"] == "/errors/protected-resource"
        assert body["error_code"] == "PROTECTED_RESOURCE"
        assert store.find_by_id(protected_account.id) is not None

    def test_owner_outside_territory_refused(
        self,
        client: TestClient,
        store: InMemoryAccountStore,
        owner_gy: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("agent-jm", role=AccountRole.AGENT, territory_id="JM")

        response = client.delete("/accounts/agent-jm", headers=auth_headers(owner_gy))

        assert response.status_code == 403
        assert response.json()["error_code"] == "AUTHORIZATION_ERROR"
        assert store.find_by_id("agent-jm") is not None

    def test_unknown_account(
        self,
        client: TestClient,
        super_admin: Account,
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        response = client.delete("/accounts/ghost", headers=auth_headers(super_admin))
        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"

    def test_audit_records_carry_request_correlation(
        self,
        client: TestClient,
        audit_log: InMemoryAuditLog,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("agent-3", role=AccountRole.AGENT)
        headers = {**auth_headers(super_admin), "X-Request-ID": REQUEST_ID}

        response = client.delete("/accounts/agent-3", headers=headers)

        assert response.status_code == 200
        kinds = {r.kind for r in audit_log.records}
        assert kinds == {AuditKind.AUTHORIZATION_DECISION, AuditKind.DELETION_OUTCOME}
        assert all(r.details["correlation_id"] == REQUEST_ID for r in audit_log.records)


@pytest.mark.integration
class TestAgentBadgeEndpoints:
    def test_get_verification_state(
        self,
        client: TestClient,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("agent-4", role=AccountRole.AGENT, first_name="Ava", last_name="Agent")

        response = client.get("/agents/agent-4/verify", headers=auth_headers(super_admin))

        assert response.status_code == 200
        body = response.json()
        assert body["canToggle"] is True
        assert body["agent"]["name"] == "Ava Agent"
        assert body["agent"]["isVerifiedAgent"] is False

    def test_verify_then_revoke(
        self,
        client: TestClient,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("agent-5", role=AccountRole.AGENT)
        headers = auth_headers(super_admin)

        path = "/agents/agent-5/verify"
        verified = client.patch(path, json={"action": "verify"}, headers=headers)
        revoked = client.patch(path, json={"action": "revoke"}, headers=headers)

        assert verified.status_code == 200
        body = verified.json()
        assert body["action"] == "verify"
        assert body["actor"]["id"] == super_admin.id
        assert body["actor"]["name"] == "Sam Super"
        assert body["agent"]["isVerifiedAgent"] is True
        assert body["agent"]["verifiedBy"] == super_admin.id
        assert body["agent"]["verifiedAt"] is not None
        assert revoked.json()["agent"]["isVerifiedAgent"] is False
        assert revoked.json()["agent"]["verifiedAt"] is None

    def test_invalid_action(
        self,
        client: TestClient,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("agent-6", role=AccountRole.AGENT)
        response = client.patch(
            "/agents/agent-6/verify",
            json={"action": "promote"},
            headers=auth_headers(super_admin),
        )
        assert response.status_code == 422
        assert response.json()["type"] == "/errors/request-validation-error"

    def test_premium_toggle(
        self,
        client: TestClient,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("agent-7", role=AccountRole.AGENT)

        response = client.patch(
            "/agents/agent-7/premium",
            json={"isPremiumAgent": True},
            headers=auth_headers(super_admin),
        )

        assert response.status_code == 200
        assert response.json()["action"] == "premium"
        assert response.json()["agent"]["isPremiumAgent"] is True

    def test_non_admin_forbidden(
        self,
        client: TestClient,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        buyer = add_account("buyer-1")
        add_account("agent-8", role=AccountRole.AGENT)

        response = client.get("/agents/agent-8/verify", headers=auth_headers(buyer))

        assert response.status_code == 403

    def test_protected_agent_badge_refused(
        self,
        client: TestClient,
        super_admin: Account,
        protected_account: Account,
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        response = client.patch(
            f"/agents/{protected_account.id}/premium",
            json={"isPremiumAgent": False},
            headers=auth_headers(super_admin),
        )
        assert response.status_code == 403
        assert response.json()["error_code"] == "PROTECTED_RESOURCE"

    def test_non_agent_target_is_bad_request(
        self,
        client: TestClient,
        super_admin: Account,
        add_account: Callable[..., Account],
        auth_headers: Callable[[Account], Headers],
    ) -> None:
        add_account("landlord-3", role=AccountRole.LANDLORD)

        verify = client.patch(
            "/agents/landlord-3/verify",
            json={"action": "verify"},
            headers=auth_headers(super_admin),
        )
        state = client.get("/agents/landlord-3/verify", headers=auth_headers(super_admin))

        assert verify.status_code == 400
        assert verify.json()["error_code"] == "WRONG_ACCOUNT_ROLE"
        assert verify.json()["detail"] == "Target account is not an agent"
        assert state.status_code == 400


@pytest.mark.integration
class TestHealthEndpoint:
    def test_health_without_token(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "checks": {}}

    def test_failing_check_degrades(self, client: TestClient) -> None:
        def _broken() -> None:
            raise ConnectionError("database unreachable")

        client.app.state.accounts.health_checks["database"] = _broken  # type: ignore[attr-defined]

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["database"] == {
            "status": "error",
            "detail": "ConnectionError",
        }


def _bypass_app(services: AccountsServices) -> FastAPI:
    return create_accounts_app(
        services,
        app_settings=AppSettings(title="Dominium Dev"),
        auth_settings=AuthSettings(jwt_secret="dev-only-secret", dev_bypass=True),
        configure_observability=False,
    )


@pytest.mark.integration
class TestDevBypassActor:
    def test_tokenless_request_acts_as_seeded_super_admin(
        self,
        services: AccountsServices,
        store: InMemoryAccountStore,
        add_account: Callable[..., Account],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        add_account("agent-dev", role=AccountRole.AGENT, territory_id="JM")

        with TestClient(_bypass_app(services), raise_server_exceptions=False) as client:
            response = client.delete("/accounts/agent-dev")

        assert response.status_code == 200
        assert response.json()["status"] == "success"
        actor = store.find_by_id(DEV_ACTOR_ID)
        assert actor is not None
        assert actor.admin_level == AdminLevel.SUPER

    def test_production_neither_bypasses_nor_seeds(
        self,
        services: AccountsServices,
        store: InMemoryAccountStore,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")

        with TestClient(_bypass_app(services), raise_server_exceptions=False) as client:
            response = client.delete("/accounts/anyone")

        assert response.status_code == 401
        assert store.find_by_id(DEV_ACTOR_ID) is None

    def test_existing_dev_profile_is_kept(
        self,
        services: AccountsServices,
        store: InMemoryAccountStore,
        add_account: Callable[..., Account],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        add_account(DEV_ACTOR_ID, role=AccountRole.ADMIN, admin_level=AdminLevel.BASIC)

        with TestClient(_bypass_app(services), raise_server_exceptions=False) as client:
            response = client.delete("/accounts/anyone")

        assert response.status_code == 403
        actor = store.find_by_id(DEV_ACTOR_ID)
        assert actor is not None
        assert actor.admin_level == AdminLevel.BASIC

    def test_sql_store_is_not_written(self) -> None:
        store = MagicMock()
        store.find_by_id.return_value = None

        _ensure_dev_actor(store)

        store.add_account.assert_not_called()

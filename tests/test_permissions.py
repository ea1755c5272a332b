"""Tests for permission resolution, territory scopes and the protected account policy."""

from __future__ import annotations

import pytest

from dominium.domain.accounts.permissions import (
    DELETE_ACCOUNT,
    SET_PREMIUM_AGENT,
    VERIFY_AGENT,
    PermissionResolver,
    authorize_actor,
    authorize_territory,
    can_perform,
)
from dominium.domain.accounts.policy import ProtectedAccountPolicy
from dominium.foundation.domain.account_value_objects import Account, AdminLevel
from dominium.foundation.domain.exceptions import AuthorizationError
from dominium.foundation.domain.permissions import (
    Capability,
    PermissionSet,
    ScopeKind,
    TerritoryScope,
)


@pytest.fixture()
def resolver() -> PermissionResolver:
    return PermissionResolver(ProtectedAccountPolicy("root@dominium.test"))


@pytest.mark.unit
class TestTerritoryScope:
    def test_all_covers_everything_including_unknown(self) -> None:
        scope = TerritoryScope.all_territories()
        assert scope.covers("GY")
        assert scope.covers(None)
        assert scope.is_unrestricted

    def test_single_covers_only_its_territory(self) -> None:
        scope = TerritoryScope.single("GY")
        assert scope.covers("GY")
        assert not scope.covers("JM")
        assert not scope.covers(None)
        assert not scope.is_unrestricted

    def test_none_covers_nothing(self) -> None:
        scope = TerritoryScope.none()
        assert not scope.covers("GY")
        assert not scope.covers(None)

    def test_single_requires_territory(self) -> None:
        with pytest.raises(ValueError, match="requires a territory_id"):
            TerritoryScope(ScopeKind.SINGLE)

    def test_all_rejects_territory(self) -> None:
        with pytest.raises(ValueError, match="does not carry"):
            TerritoryScope(ScopeKind.ALL, "GY")


@pytest.mark.unit
class TestPermissionResolver:
    def test_super_gets_everything(self, resolver: PermissionResolver) -> None:
        perms = resolver.resolve("boss@dominium.test", AdminLevel.SUPER, "GY")
        assert perms.capabilities == {Capability.VIEW, Capability.EDIT, Capability.DELETE}
        assert perms.scope.kind == ScopeKind.ALL

    def test_protected_identity_gets_everything_without_level(
        self, resolver: PermissionResolver
    ) -> None:
        perms = resolver.resolve("ROOT@dominium.test", AdminLevel.NONE, None)
        assert perms.has(Capability.DELETE)
        assert perms.scope.is_unrestricted

    def test_owner_scoped_to_territory(self, resolver: PermissionResolver) -> None:
        perms = resolver.resolve("owner@dominium.test", AdminLevel.OWNER, "GY")
        assert perms.capabilities == {Capability.VIEW, Capability.EDIT}
        assert perms.scope == TerritoryScope.single("GY")

    def test_owner_without_territory_has_empty_scope(self, resolver: PermissionResolver) -> None:
        perms = resolver.resolve("owner@dominium.test", AdminLevel.OWNER, None)
        assert perms.scope.kind == ScopeKind.NONE

    @pytest.mark.parametrize("level", [AdminLevel.NONE, AdminLevel.BASIC])
    def test_lower_levels_get_nothing(
        self, resolver: PermissionResolver, level: AdminLevel
    ) -> None:
        perms = resolver.resolve("user@dominium.test", level, "GY")
        assert perms.is_empty
        assert perms.scope.kind == ScopeKind.NONE

    def test_resolve_for_reads_account_fields(self, resolver: PermissionResolver) -> None:
        account = Account(
            id="a1", email="o@dominium.test", admin_level=AdminLevel.OWNER, territory_id="JM"
        )
        assert resolver.resolve_for(account).scope == TerritoryScope.single("JM")

    def test_resolution_is_fresh_per_call(self, resolver: PermissionResolver) -> None:
        first = resolver.resolve("o@dominium.test", AdminLevel.OWNER, "GY")
        second = resolver.resolve("o@dominium.test", AdminLevel.SUPER, "GY")
        assert first.scope != second.scope


@pytest.mark.unit
class TestAuthorizeActor:
    def test_owner_admitted_for_delete_through_territory_grant(
        self, resolver: PermissionResolver
    ) -> None:
        perms = resolver.resolve("o@dominium.test", AdminLevel.OWNER, "GY")
        authorize_actor(perms, DELETE_ACCOUNT)

    def test_owner_admitted_for_verification(self, resolver: PermissionResolver) -> None:
        perms = resolver.resolve("o@dominium.test", AdminLevel.OWNER, "GY")
        authorize_actor(perms, VERIFY_AGENT)
        authorize_actor(perms, SET_PREMIUM_AGENT)

    def test_basic_admin_refused(self, resolver: PermissionResolver) -> None:
        perms = resolver.resolve("b@dominium.test", AdminLevel.BASIC, "GY")
        with pytest.raises(AuthorizationError) as exc_info:
            authorize_actor(perms, DELETE_ACCOUNT)
        assert exc_info.value.context["operation"] == "delete_account"
        assert exc_info.value.context["admin_level"] == "basic"

    def test_territory_mismatch_refused(self, resolver: PermissionResolver) -> None:
        perms = resolver.resolve("o@dominium.test", AdminLevel.OWNER, "GY")
        with pytest.raises(AuthorizationError) as exc_info:
            authorize_territory(perms, "JM", DELETE_ACCOUNT)
        assert exc_info.value.context["target_territory_id"] == "JM"
        assert exc_info.value.context["actor_territory_id"] == "GY"

    def test_can_perform_combines_both_checks(self, resolver: PermissionResolver) -> None:
        owner = resolver.resolve("o@dominium.test", AdminLevel.OWNER, "GY")
        nobody = PermissionSet()
        assert can_perform(owner, "GY", VERIFY_AGENT)
        assert not can_perform(owner, "JM", VERIFY_AGENT)
        assert not can_perform(nobody, "GY", VERIFY_AGENT)


@pytest.mark.unit
class TestProtectedAccountPolicy:
    def test_matches_case_and_whitespace_insensitively(self) -> None:
        policy = ProtectedAccountPolicy(" Root@Dominium.Test ")
        assert policy.email == "root@dominium.test"
        assert policy.matches("ROOT@dominium.test")

    def test_missing_email_never_matches(self) -> None:
        policy = ProtectedAccountPolicy("root@dominium.test")
        assert not policy.matches(None)
        assert not policy.matches("")

    def test_disabled_policy_protects_nobody(self) -> None:
        policy = ProtectedAccountPolicy.disabled()
        assert policy.email is None
        assert not policy.matches("root@dominium.test")

"""Tests for the cascade manifest and its steps."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from dominium.domain.accounts.cascade import (
    DEFAULT_CASCADE_MANIFEST,
    IDENTITY_STEP,
    PROFILE_STEP,
    CascadeCategory,
    CascadeContext,
    CascadeStep,
    owned_table_step,
    validate_manifest,
)
from dominium.domain.accounts.counters import CounterAdjuster
from dominium.domain.accounts.identity_removal import IdentityRemover
from dominium.foundation.domain.account_value_objects import Account
from dominium.infra.identity.memory import InMemoryIdentityProvider
from dominium.infra.persistence.memory import InMemoryAccountStore


def _context(store: InMemoryAccountStore, account: Account) -> CascadeContext:
    return CascadeContext(
        account=account,
        store=store,
        identity_remover=IdentityRemover(InMemoryIdentityProvider()),
        counters=CounterAdjuster(store),
    )


def _step(key: str) -> CascadeStep:
    return next(step for step in DEFAULT_CASCADE_MANIFEST if step.key == key)


@pytest.mark.unit
class TestManifest:
    def test_children_before_parents(self) -> None:
        keys = [step.key for step in DEFAULT_CASCADE_MANIFEST]
        assert keys.index("listingMedia") < keys.index("listings")
        assert keys.index("promoRedemptions") < keys.index("profile")
        assert keys[-2:] == ["profile", "identity"]

    def test_default_manifest_is_valid(self) -> None:
        validate_manifest(DEFAULT_CASCADE_MANIFEST)

    def test_duplicate_keys_rejected(self) -> None:
        manifest = (*DEFAULT_CASCADE_MANIFEST, _step("leads"))
        with pytest.raises(ValueError, match="Duplicate"):
            validate_manifest(manifest)

    def test_missing_identity_step_rejected(self) -> None:
        manifest = tuple(s for s in DEFAULT_CASCADE_MANIFEST if s is not IDENTITY_STEP)
        with pytest.raises(ValueError, match="identity"):
            validate_manifest(manifest)

    def test_second_profile_step_rejected(self) -> None:
        extra = CascadeStep(
            "profileCopy", "copy", PROFILE_STEP.action, category=CascadeCategory.PROFILE
        )
        with pytest.raises(ValueError, match="profile"):
            validate_manifest((*DEFAULT_CASCADE_MANIFEST, extra))

    def test_extension_before_profile(self) -> None:
        custom = owned_table_step("extraLeads", "leads", "leads again")
        manifest = (*DEFAULT_CASCADE_MANIFEST[:-2], custom, PROFILE_STEP, IDENTITY_STEP)
        validate_manifest(manifest)


@pytest.mark.unit
class TestSteps:
    def test_legacy_favorites_skipped_without_email(self) -> None:
        store = InMemoryAccountStore()
        store.add_legacy_favorite("someone@dominium.test")
        ctx = _context(store, Account(id="a", email=None))
        assert _step("legacyFavorites").action(ctx) == 0

    def test_owned_table_step_rejects_unknown_table(self) -> None:
        step = owned_table_step("bogus", "not_a_table", "nothing")
        ctx = _context(InMemoryAccountStore(), Account(id="a", email=None))
        with pytest.raises(ValueError, match="Unknown auxiliary table"):
            step.action(ctx)

    def test_promo_step_claims_captured_redemption(self) -> None:
        store = InMemoryAccountStore()
        redemption = store.add_redemption("a", "FOUNDERS")
        ctx = _context(store, Account(id="a", email=None))
        ctx.redemption = redemption

        assert _step("promoRedemptions").action(ctx) == 1
        assert ctx.redemption_claimed is True

    def test_promo_step_without_claim(self) -> None:
        store = InMemoryAccountStore()
        redemption = store.add_redemption("a", "FOUNDERS")
        store.delete_redemption(redemption.id)
        ctx = _context(store, Account(id="a", email=None))
        ctx.redemption = redemption

        assert _step("promoRedemptions").action(ctx) == 0
        assert ctx.redemption_claimed is False

    def test_identity_step_records_outcome(self) -> None:
        remover = MagicMock()
        remover.remove.return_value.removed = True
        ctx = CascadeContext(
            account=Account(id="a", email=None),
            store=InMemoryAccountStore(),
            identity_remover=remover,
            counters=MagicMock(),
        )

        assert IDENTITY_STEP.action(ctx) is True
        assert ctx.identity_outcome is remover.remove.return_value
        remover.remove.assert_called_once_with("a")

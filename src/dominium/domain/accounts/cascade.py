"""Declared cascade manifest for account deletion.

The manifest is an ordered tuple of :class:`CascadeStep` descriptors.
Children come before parents so foreign keys never block a delete: listing
media before listings, every dependent table before the profile, and the
profile before the identity record.

Every step is idempotent. Running the manifest over an account whose records
are already gone yields zero counts rather than errors.

Deployments extend the cascade by passing their own manifest to the
orchestrator, typically ``DEFAULT_CASCADE_MANIFEST`` with extra steps
inserted before the ``profile`` step.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from dominium.domain.accounts.counters import CounterAdjuster
    from dominium.domain.accounts.identity_removal import (
        IdentityDeletionOutcome,
        IdentityRemover,
    )
    from dominium.foundation.domain.account_value_objects import Account, PromoRedemption
    from dominium.foundation.domain.ports.account_store import AccountStorePort


class CascadeCategory(StrEnum):
    """How a step's outcome feeds the overall status."""

    DEPENDENT = "dependent"
    PROFILE = "profile"
    IDENTITY = "identity"


@dataclass
class CascadeContext:
    """Mutable state shared by the steps of one deletion run.

    Attributes:
        account: Snapshot of the target taken before anything was deleted.
        store: Account store.
        identity_remover: Layered identity deletion.
        counters: Redemption claim and counter adjustment.
        redemption: Special-status redemption captured before the cascade.
        redemption_claimed: Set by the redemption step when this run removed it.
        identity_outcome: Set by the identity step.
    """

    account: Account
    store: AccountStorePort
    identity_remover: IdentityRemover
    counters: CounterAdjuster
    redemption: PromoRedemption | None = None
    redemption_claimed: bool = False
    identity_outcome: IdentityDeletionOutcome | None = None


@dataclass(frozen=True, slots=True)
class CascadeStep:
    """One resource category removed by the cascade.

    Attributes:
        key: Result key (e.g., "listings").
        description: Human-readable description for logs and spans.
        action: Performs the deletion; returns a count or a boolean.
        category: Dependent record, profile record or identity record.
    """

    key: str
    description: str
    action: Callable[[CascadeContext], int | bool]
    category: CascadeCategory = CascadeCategory.DEPENDENT


def _delete_listing_media(ctx: CascadeContext) -> int:
    return ctx.store.delete_listing_media(ctx.account.id)


def _delete_listings(ctx: CascadeContext) -> int:
    return ctx.store.delete_listings(ctx.account.id)


def _delete_favorites(ctx: CascadeContext) -> int:
    return ctx.store.delete_favorites(ctx.account.id)


def _delete_legacy_favorites(ctx: CascadeContext) -> int:
    if not ctx.account.email:
        return 0
    return ctx.store.delete_favorites_by_email(ctx.account.email)


def owned_table_step(key: str, table: str, description: str) -> CascadeStep:
    """Build a step that deletes an auxiliary table's rows owned by the account."""

    def _action(ctx: CascadeContext) -> int:
        return ctx.store.delete_owned_records(table, ctx.account.id)

    return CascadeStep(key=key, description=description, action=_action)


def _delete_promo_redemptions(ctx: CascadeContext) -> int:
    removed = 0
    if ctx.redemption is not None:
        ctx.redemption_claimed = ctx.counters.claim(ctx.redemption)
        removed += int(ctx.redemption_claimed)
    removed += ctx.store.delete_owned_records("promo_code_redemptions", ctx.account.id)
    return removed


def _delete_profile(ctx: CascadeContext) -> bool:
    return ctx.store.delete_profile(ctx.account)


def _delete_identity(ctx: CascadeContext) -> bool:
    outcome = ctx.identity_remover.remove(ctx.account.id)
    ctx.identity_outcome = outcome
    return outcome.removed


PROFILE_STEP = CascadeStep(
    key="profile",
    description="account profile record",
    action=_delete_profile,
    category=CascadeCategory.PROFILE,
)

IDENTITY_STEP = CascadeStep(
    key="identity",
    description="identity provider record",
    action=_delete_identity,
    category=CascadeCategory.IDENTITY,
)

DEFAULT_CASCADE_MANIFEST: tuple[CascadeStep, ...] = (
    CascadeStep("listingMedia", "media of owned listings", _delete_listing_media),
    CascadeStep("listings", "owned listings", _delete_listings),
    CascadeStep("favorites", "favorites by account id", _delete_favorites),
    CascadeStep("legacyFavorites", "favorites by email", _delete_legacy_favorites),
    owned_table_step("drafts", "property_drafts", "listing drafts"),
    owned_table_step("viewingRequests", "viewing_requests", "viewing requests"),
    owned_table_step("leads", "leads", "leads"),
    owned_table_step("emailEvents", "email_events", "email events"),
    owned_table_step("agentVetting", "agent_vetting", "agent vetting records"),
    CascadeStep("promoRedemptions", "promotional redemptions", _delete_promo_redemptions),
    PROFILE_STEP,
    IDENTITY_STEP,
)


def validate_manifest(manifest: tuple[CascadeStep, ...]) -> None:
    """Check that keys are unique and exactly one profile and identity step exist.

    Raises:
        ValueError: If the manifest is malformed.
    """
    keys = [step.key for step in manifest]
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        msg = f"Duplicate cascade step keys: {duplicates}"
        raise ValueError(msg)
    for category in (CascadeCategory.PROFILE, CascadeCategory.IDENTITY):
        count = sum(1 for step in manifest if step.category == category)
        if count != 1:
            msg = f"Cascade manifest must contain exactly one {category} step, found {count}"
            raise ValueError(msg)

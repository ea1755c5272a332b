"""Account value objects for the account lifecycle domain.

Immutable snapshots of what the account store and identity provider hold.
Role, admin level and subscription tier are parsed leniently from stored
strings: unknown admin levels collapse to ``none`` so a corrupted row can
never grant privilege.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any


class AccountRole(StrEnum):
    """Role an account plays on the platform."""

    AGENT = "agent"
    LANDLORD = "landlord"
    FSBO = "fsbo"
    BUYER = "buyer"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | None) -> AccountRole:
        """Parse a stored role string, defaulting to BUYER for unknown values."""
        if value is None:
            return cls.BUYER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.BUYER


_ADMIN_LEVEL_RANK = {"none": 0, "basic": 1, "owner": 2, "super": 3}


class AdminLevel(StrEnum):
    """Ordered privilege tier: none < basic < owner < super.

    Comparison operators follow the privilege rank, not the string value.

    Example:
        >>> AdminLevel.OWNER < AdminLevel.SUPER
        True
        >>> AdminLevel.parse("root")
        <AdminLevel.NONE: 'none'>
    """

    NONE = "none"
    BASIC = "basic"
    OWNER = "owner"
    SUPER = "super"

    @property
    def rank(self) -> int:
        """Numeric rank used for ordering."""
        return _ADMIN_LEVEL_RANK[self.value]

    @classmethod
    def parse(cls, value: str | None) -> AdminLevel:
        """Parse a stored admin level. NULL or unknown values become NONE."""
        if value is None:
            return cls.NONE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.NONE

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AdminLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AdminLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AdminLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AdminLevel):
            return NotImplemented
        return self.rank >= other.rank


class SubscriptionTier(StrEnum):
    """Subscription tier of an account."""

    FREE = "free"
    BASIC = "basic"
    PROFESSIONAL = "professional"
    FOUNDING_MEMBER = "founding_member"
    PREMIUM = "premium"

    @classmethod
    def parse(cls, value: str | None) -> SubscriptionTier:
        """Parse a stored tier string, defaulting to FREE."""
        if value is None:
            return cls.FREE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.FREE


# Tiers granted through a counter-bearing promotional code.
SPECIAL_STATUS_TIERS: frozenset[SubscriptionTier] = frozenset(
    {SubscriptionTier.PROFESSIONAL, SubscriptionTier.FOUNDING_MEMBER}
)


def normalize_email(email: str | None) -> str | None:
    """Lowercase and strip an email address. Empty values become None."""
    if email is None:
        return None
    normalized = email.strip().lower()
    return normalized or None


@dataclass(frozen=True, slots=True)
class Account:
    """Snapshot of an account profile record.

    Attributes:
        id: Account identifier (shared with the identity provider).
        email: Account email. May be None for legacy rows.
        role: Platform role.
        admin_level: Privilege tier.
        territory_id: Territory (country/region) the account belongs to.
        subscription_tier: Current subscription tier.
        first_name: Given name.
        last_name: Family name.
        is_verified_agent: Trust badge flag.
        verified_by: Account id of the admin who granted the badge.
        verified_at: When the badge was granted (UTC).
        is_premium_agent: Premium badge flag.
    """

    id: str
    email: str | None
    role: AccountRole = AccountRole.BUYER
    admin_level: AdminLevel = AdminLevel.NONE
    territory_id: str | None = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    first_name: str | None = None
    last_name: str | None = None
    is_verified_agent: bool = False
    verified_by: str | None = None
    verified_at: datetime | None = None
    is_premium_agent: bool = False

    @property
    def has_special_status(self) -> bool:
        """True when the tier was obtained through a promotional redemption."""
        return self.subscription_tier in SPECIAL_STATUS_TIERS

    @property
    def is_admin(self) -> bool:
        """True for admin-role accounts or any non-none admin level."""
        return self.role == AccountRole.ADMIN or self.admin_level > AdminLevel.NONE

    @property
    def display_name(self) -> str:
        """Full name, falling back to the email or the id."""
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.email or self.id

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Account:
        """Build an account from a raw store row (column name -> value)."""
        return cls(
            id=str(row["id"]),
            email=row.get("email"),
            role=AccountRole.parse(row.get("user_type")),
            admin_level=AdminLevel.parse(row.get("admin_level")),
            territory_id=(
                str(row["country_id"]) if row.get("country_id") is not None else None
            ),
            subscription_tier=SubscriptionTier.parse(row.get("subscription_tier")),
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            is_verified_agent=bool(row.get("is_verified_agent") or False),
            verified_by=(
                str(row["verified_by"]) if row.get("verified_by") is not None else None
            ),
            verified_at=row.get("verified_at"),
            is_premium_agent=bool(row.get("is_premium_agent") or False),
        )


@dataclass(frozen=True, slots=True)
class IdentityRecord:
    """Entry in the identity provider's credential store."""

    id: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class PromoRedemption:
    """Link between an account and a counter-bearing promotional code."""

    id: str
    account_id: str
    promo_code_id: str

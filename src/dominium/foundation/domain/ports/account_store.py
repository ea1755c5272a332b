"""Port interface for the account profile store.

The account store owns the profile record and every record that depends on
it: listings and their media, favorites, drafts, leads and promotional
redemptions. All delete operations are idempotent: deleting records that
are already gone returns 0 (or False) rather than raising.

Example:
    >>> from dominium.foundation.domain.ports import AccountStorePort
    >>> def count_listings_removed(store: AccountStorePort, account_id: str) -> int:
    ...     return store.delete_listings(account_id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from dominium.foundation.domain.account_value_objects import Account, PromoRedemption


@runtime_checkable
class AccountStorePort(Protocol):
    """Port for reading and deleting account records."""

    def find_by_id(self, account_id: str) -> Account | None:
        """Return the live profile record, or None if absent."""
        ...

    def find_by_email(self, email: str) -> Account | None:
        """Return the live profile record with this email (case-insensitive)."""
        ...

    def exists_by_id(self, account_id: str) -> bool:
        """Whether a live profile record exists."""
        ...

    def find_tombstone(self, account_id: str) -> Account | None:
        """Return the snapshot kept when the profile was deleted, if any."""
        ...

    def find_redemption(self, account_id: str) -> PromoRedemption | None:
        """Return the account's promotional redemption, if any."""
        ...

    def delete_listing_media(self, account_id: str) -> int:
        """Delete media attached to listings owned by the account."""
        ...

    def delete_listings(self, account_id: str) -> int:
        """Delete listings owned by the account."""
        ...

    def delete_favorites(self, account_id: str) -> int:
        """Delete favorites linked by account id."""
        ...

    def delete_favorites_by_email(self, email: str) -> int:
        """Delete favorites linked by email (legacy linkage)."""
        ...

    def delete_owned_records(self, table: str, account_id: str) -> int:
        """Delete rows of an auxiliary table owned by the account.

        Args:
            table: Name of an auxiliary table known to the store.
            account_id: Owning account.

        Returns:
            Number of rows removed.

        Raises:
            ValueError: If the table is not a known auxiliary table.
        """
        ...

    def delete_profile(self, account: Account) -> bool:
        """Delete the profile record and keep a tombstone snapshot.

        Returns:
            True if the record is gone after the call (removed now or already absent).
        """
        ...

    def update_verification(
        self,
        account_id: str,
        *,
        is_verified: bool,
        verified_by: str | None,
        verified_at: datetime | None,
    ) -> Account:
        """Set or clear the verified-agent badge and return the updated record."""
        ...

    def update_premium(self, account_id: str, *, is_premium: bool) -> Account:
        """Set or clear the premium-agent badge and return the updated record."""
        ...

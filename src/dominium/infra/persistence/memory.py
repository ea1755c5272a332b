"""In-memory account store and audit log.

Used by the ``memory`` backend and throughout the test suite. All methods
are guarded by a lock because FastAPI runs sync endpoints in a thread pool.
"""

from __future__ import annotations

import dataclasses
import itertools
import threading
from typing import TYPE_CHECKING

from dominium.foundation.domain.account_value_objects import (
    Account,
    PromoRedemption,
    normalize_email,
)
from dominium.foundation.domain.exceptions import NotFoundError
from dominium.infra.persistence.tables import OWNED_RECORD_TABLES, owner_column

if TYPE_CHECKING:
    from datetime import datetime

    from dominium.foundation.domain.audit import AuditKind, AuditRecord


class InMemoryAccountStore:
    """Dict-backed AccountStorePort and PromoCounterStorePort."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._profiles: dict[str, Account] = {}
        self._tombstones: dict[str, Account] = {}
        self._listings: dict[str, str] = {}
        self._listing_media: dict[str, str] = {}
        self._favorites: dict[str, str] = {}
        self._legacy_favorites: dict[str, str] = {}
        self._owned: dict[str, dict[str, str]] = {
            table: {} for table in OWNED_RECORD_TABLES if table != "promo_code_redemptions"
        }
        self._redemptions: dict[str, PromoRedemption] = {}
        self._counters: dict[str, int] = {}

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # -- seeding ----------------------------------------------------------------

    def add_account(self, account: Account) -> Account:
        with self._lock:
            self._profiles[account.id] = account
            self._tombstones.pop(account.id, None)
        return account

    def add_listing(self, account_id: str, media_count: int = 0) -> str:
        with self._lock:
            listing_id = self._next_id("listing")
            self._listings[listing_id] = account_id
            for _ in range(media_count):
                self._listing_media[self._next_id("media")] = listing_id
        return listing_id

    def add_favorite(self, account_id: str) -> str:
        with self._lock:
            favorite_id = self._next_id("favorite")
            self._favorites[favorite_id] = account_id
        return favorite_id

    def add_legacy_favorite(self, email: str) -> str:
        with self._lock:
            favorite_id = self._next_id("legacy-favorite")
            self._legacy_favorites[favorite_id] = normalize_email(email) or ""
        return favorite_id

    def add_owned_record(self, table: str, account_id: str) -> str:
        owner_column(table)
        with self._lock:
            row_id = self._next_id(table)
            self._owned[table][row_id] = account_id
        return row_id

    def add_redemption(self, account_id: str, promo_code_id: str) -> PromoRedemption:
        with self._lock:
            redemption = PromoRedemption(
                id=self._next_id("redemption"),
                account_id=account_id,
                promo_code_id=promo_code_id,
            )
            self._redemptions[redemption.id] = redemption
        return redemption

    def set_counter(self, counter_id: str, value: int) -> None:
        with self._lock:
            self._counters[counter_id] = value

    # -- inspection -------------------------------------------------------------

    def counter(self, counter_id: str) -> int | None:
        with self._lock:
            return self._counters.get(counter_id)

    def count_listings(self, account_id: str) -> int:
        with self._lock:
            return sum(1 for owner in self._listings.values() if owner == account_id)

    def count_favorites(self, account_id: str) -> int:
        with self._lock:
            return sum(1 for owner in self._favorites.values() if owner == account_id)

    def count_redemptions(self, account_id: str) -> int:
        with self._lock:
            return sum(1 for r in self._redemptions.values() if r.account_id == account_id)

    # -- AccountStorePort -------------------------------------------------------

    def find_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            return self._profiles.get(account_id)

    def find_by_email(self, email: str) -> Account | None:
        wanted = normalize_email(email)
        with self._lock:
            for account in self._profiles.values():
                if wanted is not None and normalize_email(account.email) == wanted:
                    return account
        return None

    def exists_by_id(self, account_id: str) -> bool:
        with self._lock:
            return account_id in self._profiles

    def find_tombstone(self, account_id: str) -> Account | None:
        with self._lock:
            return self._tombstones.get(account_id)

    def find_redemption(self, account_id: str) -> PromoRedemption | None:
        with self._lock:
            for redemption in self._redemptions.values():
                if redemption.account_id == account_id:
                    return redemption
        return None

    def delete_listing_media(self, account_id: str) -> int:
        with self._lock:
            owned = {lid for lid, owner in self._listings.items() if owner == account_id}
            doomed = [mid for mid, lid in self._listing_media.items() if lid in owned]
            for media_id in doomed:
                del self._listing_media[media_id]
        return len(doomed)

    def delete_listings(self, account_id: str) -> int:
        with self._lock:
            doomed = [lid for lid, owner in self._listings.items() if owner == account_id]
            for listing_id in doomed:
                del self._listings[listing_id]
        return len(doomed)

    def delete_favorites(self, account_id: str) -> int:
        with self._lock:
            doomed = [fid for fid, owner in self._favorites.items() if owner == account_id]
            for favorite_id in doomed:
                del self._favorites[favorite_id]
        return len(doomed)

    def delete_favorites_by_email(self, email: str) -> int:
        wanted = normalize_email(email)
        with self._lock:
            doomed = [fid for fid, e in self._legacy_favorites.items() if e == wanted]
            for favorite_id in doomed:
                del self._legacy_favorites[favorite_id]
        return len(doomed)

    def delete_owned_records(self, table: str, account_id: str) -> int:
        owner_column(table)
        with self._lock:
            if table == "promo_code_redemptions":
                doomed = [
                    rid for rid, r in self._redemptions.items() if r.account_id == account_id
                ]
                for redemption_id in doomed:
                    del self._redemptions[redemption_id]
                return len(doomed)
            rows = self._owned[table]
            doomed = [rid for rid, owner in rows.items() if owner == account_id]
            for row_id in doomed:
                del rows[row_id]
        return len(doomed)

    def delete_profile(self, account: Account) -> bool:
        with self._lock:
            existing = self._profiles.pop(account.id, None)
            self._tombstones.setdefault(account.id, existing or account)
        return True

    def update_verification(
        self,
        account_id: str,
        *,
        is_verified: bool,
        verified_by: str | None,
        verified_at: datetime | None,
    ) -> Account:
        with self._lock:
            account = self._require(account_id)
            updated = dataclasses.replace(
                account,
                is_verified_agent=is_verified,
                verified_by=verified_by,
                verified_at=verified_at,
            )
            self._profiles[account_id] = updated
        return updated

    def update_premium(self, account_id: str, *, is_premium: bool) -> Account:
        with self._lock:
            updated = dataclasses.replace(self._require(account_id), is_premium_agent=is_premium)
            self._profiles[account_id] = updated
        return updated

    def _require(self, account_id: str) -> Account:
        account = self._profiles.get(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    # -- PromoCounterStorePort --------------------------------------------------

    def delete_redemption(self, redemption_id: str) -> int:
        with self._lock:
            return 1 if self._redemptions.pop(redemption_id, None) is not None else 0

    def read_counter(self, counter_id: str) -> int | None:
        with self._lock:
            return self._counters.get(counter_id)

    def compare_and_set(self, counter_id: str, expected: int, new_value: int) -> bool:
        with self._lock:
            if self._counters.get(counter_id) != expected:
                return False
            self._counters[counter_id] = new_value
            return True


class InMemoryAuditLog:
    """List-backed AuditLogPort."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[AuditRecord] = []

    def append(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> list[AuditRecord]:
        with self._lock:
            return list(self._records)

    def of_kind(self, kind: AuditKind) -> list[AuditRecord]:
        return [r for r in self.records if r.kind == kind]

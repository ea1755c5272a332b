"""SQL account store over a sync SQLAlchemy session factory.

Implements :class:`AccountStorePort` and :class:`PromoCounterStorePort`
with plain ``text()`` statements against the platform's existing tables.
Only the tombstone table is owned by this service; it is created on
startup with ``CREATE TABLE IF NOT EXISTS``.

Every delete is idempotent: it reports the number of rows it removed, and
removing nothing is not an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

from dominium.foundation.domain.account_value_objects import (
    Account,
    PromoRedemption,
    normalize_email,
)
from dominium.foundation.domain.exceptions import NotFoundError
from dominium.infra.persistence.tables import owner_column

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

_PROFILE_COLUMNS = (
    "id, email, user_type, admin_level, country_id, subscription_tier, "
    "first_name, last_name, is_verified_agent, verified_by, verified_at, is_premium_agent"
)

_CREATE_TOMBSTONE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS account_tombstones (
    id VARCHAR(64) PRIMARY KEY,
    email TEXT,
    user_type TEXT,
    admin_level TEXT,
    country_id TEXT,
    subscription_tier TEXT,
    first_name TEXT,
    last_name TEXT,
    deleted_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""

_SELECT_PROFILE_SQL = f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE id = :id"

_SELECT_PROFILE_BY_EMAIL_SQL = (
    f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE LOWER(email) = :email LIMIT 1"
)

_EXISTS_PROFILE_SQL = "SELECT 1 FROM profiles WHERE id = :id"

_SELECT_TOMBSTONE_SQL = (
    "SELECT id, email, user_type, admin_level, country_id, subscription_tier, "
    "first_name, last_name FROM account_tombstones WHERE id = :id"
)

_SELECT_REDEMPTION_SQL = (
    "SELECT id, user_id, promo_code_id FROM promo_code_redemptions "
    "WHERE user_id = :account_id LIMIT 1"
)

_DELETE_LISTING_MEDIA_SQL = (
    "DELETE FROM property_media WHERE property_id IN "
    "(SELECT id FROM properties WHERE user_id = :account_id)"
)

_DELETE_LISTINGS_SQL = "DELETE FROM properties WHERE user_id = :account_id"

_DELETE_FAVORITES_SQL = "DELETE FROM favorites WHERE user_id = :account_id"

_DELETE_LEGACY_FAVORITES_SQL = "DELETE FROM user_favorites WHERE LOWER(user_email) = :email"

_INSERT_TOMBSTONE_SQL = """
INSERT INTO account_tombstones
    (id, email, user_type, admin_level, country_id, subscription_tier, first_name, last_name)
VALUES
    (:id, :email, :user_type, :admin_level, :country_id, :subscription_tier,
     :first_name, :last_name)
ON CONFLICT (id) DO NOTHING
"""

_DELETE_PROFILE_SQL = "DELETE FROM profiles WHERE id = :id"

_UPDATE_VERIFICATION_SQL = (
    "UPDATE profiles SET is_verified_agent = :is_verified, verified_by = :verified_by, "
    "verified_at = :verified_at WHERE id = :id"
)

_UPDATE_PREMIUM_SQL = "UPDATE profiles SET is_premium_agent = :is_premium WHERE id = :id"

_DELETE_REDEMPTION_SQL = "DELETE FROM promo_code_redemptions WHERE id = :id"

_SELECT_COUNTER_SQL = "SELECT current_redemptions FROM promo_codes WHERE id = :id"

_CAS_COUNTER_SQL = (
    "UPDATE promo_codes SET current_redemptions = :new_value "
    "WHERE id = :id AND current_redemptions = :expected"
)


class SqlAccountStore:
    """AccountStorePort and PromoCounterStorePort over SQLAlchemy sessions.

    Attributes:
        _session_factory: Sync session factory; one transaction per call.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def ensure_table_exists(self) -> None:
        """Create the tombstone table if it does not exist.

        Called during application startup. Idempotent.
        """
        with self._session_factory() as session, session.begin():
            session.execute(text(_CREATE_TOMBSTONE_TABLE_SQL))
        logger.info("account_tombstone_table_ensured")

    # -- reads ------------------------------------------------------------------

    def find_by_id(self, account_id: str) -> Account | None:
        row = self._fetch_one(_SELECT_PROFILE_SQL, {"id": account_id})
        return Account.from_row(row) if row is not None else None

    def find_by_email(self, email: str) -> Account | None:
        normalized = normalize_email(email)
        if normalized is None:
            return None
        row = self._fetch_one(_SELECT_PROFILE_BY_EMAIL_SQL, {"email": normalized})
        return Account.from_row(row) if row is not None else None

    def exists_by_id(self, account_id: str) -> bool:
        return self._fetch_one(_EXISTS_PROFILE_SQL, {"id": account_id}) is not None

    def find_tombstone(self, account_id: str) -> Account | None:
        row = self._fetch_one(_SELECT_TOMBSTONE_SQL, {"id": account_id})
        return Account.from_row(row) if row is not None else None

    def find_redemption(self, account_id: str) -> PromoRedemption | None:
        row = self._fetch_one(_SELECT_REDEMPTION_SQL, {"account_id": account_id})
        if row is None:
            return None
        return PromoRedemption(
            id=str(row["id"]),
            account_id=str(row["user_id"]),
            promo_code_id=str(row["promo_code_id"]),
        )

    # -- deletes ----------------------------------------------------------------

    def delete_listing_media(self, account_id: str) -> int:
        return self._execute(_DELETE_LISTING_MEDIA_SQL, {"account_id": account_id})

    def delete_listings(self, account_id: str) -> int:
        return self._execute(_DELETE_LISTINGS_SQL, {"account_id": account_id})

    def delete_favorites(self, account_id: str) -> int:
        return self._execute(_DELETE_FAVORITES_SQL, {"account_id": account_id})

    def delete_favorites_by_email(self, email: str) -> int:
        normalized = normalize_email(email)
        if normalized is None:
            return 0
        return self._execute(_DELETE_LEGACY_FAVORITES_SQL, {"email": normalized})

    def delete_owned_records(self, table: str, account_id: str) -> int:
        # Table and column names come from a fixed whitelist, never from input.
        column = owner_column(table)
        return self._execute(
            f"DELETE FROM {table} WHERE {column} = :account_id",  # noqa: S608
            {"account_id": account_id},
        )

    def delete_profile(self, account: Account) -> bool:
        with self._session_factory() as session, session.begin():
            session.execute(
                text(_INSERT_TOMBSTONE_SQL),
                {
                    "id": account.id,
                    "email": account.email,
                    "user_type": account.role.value,
                    "admin_level": account.admin_level.value,
                    "country_id": account.territory_id,
                    "subscription_tier": account.subscription_tier.value,
                    "first_name": account.first_name,
                    "last_name": account.last_name,
                },
            )
            session.execute(text(_DELETE_PROFILE_SQL), {"id": account.id})
        return True

    # -- updates ----------------------------------------------------------------

    def update_verification(
        self,
        account_id: str,
        *,
        is_verified: bool,
        verified_by: str | None,
        verified_at: datetime | None,
    ) -> Account:
        updated = self._execute(
            _UPDATE_VERIFICATION_SQL,
            {
                "id": account_id,
                "is_verified": is_verified,
                "verified_by": verified_by,
                "verified_at": verified_at,
            },
        )
        return self._reload(account_id, updated)

    def update_premium(self, account_id: str, *, is_premium: bool) -> Account:
        updated = self._execute(_UPDATE_PREMIUM_SQL, {"id": account_id, "is_premium": is_premium})
        return self._reload(account_id, updated)

    # -- PromoCounterStorePort --------------------------------------------------

    def delete_redemption(self, redemption_id: str) -> int:
        return self._execute(_DELETE_REDEMPTION_SQL, {"id": redemption_id})

    def read_counter(self, counter_id: str) -> int | None:
        row = self._fetch_one(_SELECT_COUNTER_SQL, {"id": counter_id})
        if row is None:
            return None
        return int(row["current_redemptions"] or 0)

    def compare_and_set(self, counter_id: str, expected: int, new_value: int) -> bool:
        updated = self._execute(
            _CAS_COUNTER_SQL,
            {"id": counter_id, "expected": expected, "new_value": new_value},
        )
        return updated == 1

    # -- helpers ----------------------------------------------------------------

    def _fetch_one(self, sql: str, params: dict[str, Any]) -> dict[str, Any] | None:
        with self._session_factory() as session:
            row = session.execute(text(sql), params).mappings().first()
        return dict(row) if row is not None else None

    def _execute(self, sql: str, params: dict[str, Any]) -> int:
        with self._session_factory() as session, session.begin():
            result = session.execute(text(sql), params)
            return int(result.rowcount or 0)

    def _reload(self, account_id: str, updated: int) -> Account:
        account = self.find_by_id(account_id) if updated else None
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

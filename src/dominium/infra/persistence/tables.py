"""Auxiliary tables owned by an account.

Each entry maps a table name to the column holding the owning account id.
Generic owned-record deletes are only allowed on these tables.
"""

from __future__ import annotations

OWNED_RECORD_TABLES: dict[str, str] = {
    "property_drafts": "user_id",
    "viewing_requests": "user_id",
    "leads": "user_id",
    "email_events": "user_id",
    "agent_vetting": "user_id",
    "promo_code_redemptions": "user_id",
}


def owner_column(table: str) -> str:
    """Owner column of an auxiliary table.

    Raises:
        ValueError: If the table is not an auxiliary table.
    """
    try:
        return OWNED_RECORD_TABLES[table]
    except KeyError:
        msg = f"Unknown auxiliary table: {table!r}"
        raise ValueError(msg) from None

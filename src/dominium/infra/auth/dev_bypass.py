"""Local sign-in without a token.

With ``AUTH_DEV_BYPASS=true`` a request that carries no Authorization header
acts as a fixed local super admin, :data:`DEV_ACTOR_ID`. Accounts operations
load the actor's profile before anything else, so the bypass is only useful
once that profile exists; :func:`dev_actor_account` builds it for seeding.

``ENVIRONMENT=production`` disables the bypass whatever the flag says. A
request that does send an Authorization header is always validated.
"""

from __future__ import annotations

import logging
import os

from dominium.foundation.domain.account_value_objects import Account, AccountRole, AdminLevel

logger = logging.getLogger(__name__)

DEV_ACTOR_ID = "dev-admin"
DEV_ACTOR_EMAIL = "dev-admin@localhost"

DEV_BYPASS_CLAIMS: dict[str, object] = {
    "sub": DEV_ACTOR_ID,
    "email": DEV_ACTOR_EMAIL,
    "role": "authenticated",
    "aud": "authenticated",
}


def dev_actor_account() -> Account:
    """Profile of the bypass principal: a super admin with no territory."""
    return Account(
        id=DEV_ACTOR_ID,
        email=DEV_ACTOR_EMAIL,
        role=AccountRole.ADMIN,
        admin_level=AdminLevel.SUPER,
        first_name="Local",
        last_name="Admin",
    )


def resolve_dev_bypass(requested: bool) -> bool:
    """Whether the bypass is active for this process.

    Args:
        requested: Value of ``AUTH_DEV_BYPASS``.

    Returns:
        False when not requested or when ``ENVIRONMENT`` is ``production``.
    """
    if not requested:
        return False

    env = os.environ.get("ENVIRONMENT", "development")
    if env == "production":
        logger.error(
            "auth_dev_bypass_blocked",
            extra={"environment": env, "actor_id": DEV_ACTOR_ID},
        )
        return False

    logger.warning(
        "auth_dev_bypass_active",
        extra={"environment": env, "actor_id": DEV_ACTOR_ID},
    )
    return True

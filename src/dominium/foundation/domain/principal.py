"""Principal value object representing an authenticated identity.

Pure domain object with no external dependencies. Immutable (frozen dataclass).
Extracted from validated JWT claims by the auth middleware. The principal only
says *who* is calling; admin level and territory are read from the account
store on every request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class PrincipalType(StrEnum):
    """Type of authenticated principal."""

    USER = "user"
    SERVICE = "service"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated entity performing a request.

    Attributes:
        subject: JWT 'sub' claim -- identity id in the identity provider.
        account_id: Account id the identity maps to (same value as subject
            for identity providers that share ids with the profile store).
        email: Email from JWT 'email' claim. None if absent.
        roles: Role strings from JWT 'role'/'roles' claims. Empty tuple if absent.
        principal_type: USER or SERVICE. Defaults to USER.
    """

    subject: str
    account_id: str
    email: str | None = None
    roles: tuple[str, ...] = ()
    principal_type: PrincipalType = PrincipalType.USER

"""Protected account policy.

One designated account is immune to deletion and mutation through this
service, whoever the actor is. The designated email is injected from
configuration rather than compiled in, so tests can supply their own.
"""

from __future__ import annotations

from dataclasses import dataclass

from dominium.foundation.domain.account_value_objects import normalize_email


@dataclass(frozen=True, slots=True)
class ProtectedAccountPolicy:
    """Immutable holder of the protected account's email.

    Example:
        >>> policy = ProtectedAccountPolicy("Root@Example.com ")
        >>> policy.matches("root@example.com")
        True
        >>> policy.matches(None)
        False
    """

    email: str | None

    def __post_init__(self) -> None:
        object.__setattr__(self, "email", normalize_email(self.email))

    def matches(self, email: str | None) -> bool:
        """Case-insensitive match. Missing emails never match."""
        candidate = normalize_email(email)
        if candidate is None or self.email is None:
            return False
        return candidate == self.email

    @classmethod
    def disabled(cls) -> ProtectedAccountPolicy:
        """A policy that protects no account."""
        return cls(None)

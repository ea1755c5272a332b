"""FastAPI dependency functions for authentication.

Usage:
    from dominium.infra.auth.dependencies import OptionalPrincipal

    @router.delete("/accounts/{account_id}")
    def delete_account(account_id: str, principal: OptionalPrincipal):
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from dominium.foundation.application.context import (
    get_current_principal as _get_principal_from_context,
)
from dominium.foundation.application.context import (
    get_optional_principal as _get_optional_principal_from_context,
)
from dominium.foundation.domain.principal import Principal


def get_current_principal() -> Principal:
    """FastAPI dependency that returns the authenticated principal.

    Raises:
        NoRequestContextError: If called outside authenticated request.
    """
    return _get_principal_from_context()


def get_optional_principal() -> Principal | None:
    """FastAPI dependency returning the principal, or None when unauthenticated."""
    return _get_optional_principal_from_context()


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
OptionalPrincipal = Annotated[Principal | None, Depends(get_optional_principal)]

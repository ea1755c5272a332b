"""Request context management for cross-cutting concerns.

Provides ContextVar-based propagation of request-scoped data (acting account
id, correlation id) and of the authenticated principal, so audit records and
log lines can be attributed without threading parameters through every call.

Principal context: a separate ContextVar for the authenticated principal,
managed by the JWT auth middleware independently of RequestContext.

Usage:
    from dominium.foundation.application.context import get_optional_principal

    principal = get_optional_principal()  # None when unauthenticated
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

    from dominium.foundation.domain.principal import Principal


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Immutable container for request-scoped context data.

    Attributes:
        actor_id: Account id of the authenticated actor.
        correlation_id: Unique ID for distributed tracing.
    """

    actor_id: str
    correlation_id: str


request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


class NoRequestContextError(RuntimeError):
    """Raised when request context is accessed outside of a request."""

    def __init__(self) -> None:
        super().__init__(
            "No request context available. "
            "Ensure this code is called within an HTTP request with context middleware."
        )


def get_current_context() -> RequestContext:
    """Get the current request context.

    Raises:
        NoRequestContextError: If called outside of a request context.
    """
    ctx = request_context.get()
    if ctx is None:
        raise NoRequestContextError()
    return ctx


def get_current_correlation_id() -> str:
    """Get the current correlation ID for distributed tracing.

    Raises:
        NoRequestContextError: If called outside of a request context.
    """
    return get_current_context().correlation_id


def set_request_context(actor_id: str, correlation_id: str) -> Token[RequestContext | None]:
    """Set the request context for the current task.

    Returns:
        Token for resetting the context via :func:`clear_request_context`.
    """
    return request_context.set(RequestContext(actor_id=actor_id, correlation_id=correlation_id))


def clear_request_context(token: Token[RequestContext | None]) -> None:
    """Reset the request context using the provided token."""
    request_context.reset(token)


# ---------------------------------------------------------------------------
# Principal context
# ---------------------------------------------------------------------------

_principal_context: ContextVar[Principal | None] = ContextVar("principal_context", default=None)


def set_principal_context(principal: Principal) -> Token[Principal | None]:
    """Set the authenticated principal for the current request.

    Called by the auth middleware after successful JWT validation.

    Args:
        principal: Validated Principal extracted from JWT claims.

    Returns:
        Token for resetting the context.
    """
    return _principal_context.set(principal)


def clear_principal_context(token: Token[Principal | None]) -> None:
    """Reset the principal context using the provided token."""
    _principal_context.reset(token)


def get_current_principal() -> Principal:
    """Get the authenticated principal from request context.

    Raises:
        NoRequestContextError: If called outside an authenticated request.
    """
    principal = _principal_context.get()
    if principal is None:
        raise NoRequestContextError()
    return principal


def get_optional_principal() -> Principal | None:
    """Get the authenticated principal if available, or None.

    The accounts router relies on this: a missing principal is turned into
    an AuthenticationError by the orchestrator and gates, not here.
    """
    return _principal_context.get()

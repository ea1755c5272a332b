"""Dominium Foundation Application -- request context and wiring descriptors."""

from dominium.foundation.application.context import (
    NoRequestContextError,
    RequestContext,
    clear_principal_context,
    clear_request_context,
    get_current_context,
    get_current_correlation_id,
    get_current_principal,
    get_optional_principal,
    set_principal_context,
    set_request_context,
)
from dominium.foundation.application.contributions import (
    LIFESPAN_PRIORITY_IDENTITY,
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LIFESPAN_PRIORITY_PERSISTENCE,
    LifespanContribution,
    MiddlewareContribution,
)

__all__ = [
    "LIFESPAN_PRIORITY_IDENTITY",
    "LIFESPAN_PRIORITY_OBSERVABILITY",
    "LIFESPAN_PRIORITY_PERSISTENCE",
    "LifespanContribution",
    "MiddlewareContribution",
    "NoRequestContextError",
    "RequestContext",
    "clear_principal_context",
    "clear_request_context",
    "get_current_context",
    "get_current_correlation_id",
    "get_current_principal",
    "get_optional_principal",
    "set_principal_context",
    "set_request_context",
]

"""Middleware populating the request context from the authenticated principal.

Runs inside the auth middleware, so the principal context is already set.
The actor id comes from the principal (empty for excluded paths) and the
correlation id from the request ID middleware.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

from dominium.foundation.application.context import (
    clear_request_context,
    get_optional_principal,
    set_request_context,
)
from dominium.foundation.application.contributions import MiddlewareContribution
from dominium.infra.fastapi.middleware.request_id import get_request_id

if TYPE_CHECKING:
    from collections.abc import Callable


class RequestContextMiddleware:
    """Pure ASGI middleware that sets RequestContext for the request duration."""

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        principal = get_optional_principal()
        actor_id = principal.account_id if principal is not None else ""
        correlation_id = get_request_id() or str(uuid4())

        token = set_request_context(actor_id=actor_id, correlation_id=correlation_id)
        if actor_id:
            structlog.contextvars.bind_contextvars(actor_id=actor_id)
        try:
            await self.app(scope, receive, send)
        finally:
            clear_request_context(token)
            if actor_id:
                structlog.contextvars.unbind_contextvars("actor_id")


contribution = MiddlewareContribution(
    middleware_class=RequestContextMiddleware,
    priority=200,  # Context band (200-299)
)

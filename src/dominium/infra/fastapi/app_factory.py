"""FastAPI application factory.

:func:`create_app` wires CORS, error handlers, priority-ordered middleware,
composed lifespan hooks and routers into a FastAPI application. Callers
pass their contributions explicitly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from dominium.infra.fastapi.error_handlers import register_exception_handlers
from dominium.infra.fastapi.lifespan import compose_lifespan
from dominium.infra.fastapi.settings import AppSettings

if TYPE_CHECKING:
    from fastapi import APIRouter

    from dominium.foundation.application.contributions import (
        LifespanContribution,
        MiddlewareContribution,
    )

logger = logging.getLogger(__name__)


def create_app(
    settings: AppSettings | None = None,
    *,
    routers: list[APIRouter] | None = None,
    middleware: list[MiddlewareContribution] | None = None,
    lifespan_hooks: list[LifespanContribution] | None = None,
) -> FastAPI:
    """Create a FastAPI application from explicit contributions.

    Args:
        settings: Application settings. If ``None``, loaded from environment.
        routers: Routers to include.
        middleware: Middleware contributions. Lower priority runs outermost.
        lifespan_hooks: Lifespan hooks, composed by priority.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or AppSettings()

    app = FastAPI(
        **settings.fastapi_kwargs(),
        lifespan=compose_lifespan(list(lifespan_hooks or [])),
    )

    app.add_middleware(CORSMiddleware, **settings.cors.middleware_kwargs())

    # Starlette wraps in LIFO order: add highest priority first.
    contributions = sorted(middleware or [], key=lambda m: m.priority)
    for mw in reversed(contributions):
        app.add_middleware(mw.middleware_class, **mw.kwargs)
        logger.info(
            "middleware_registered",
            extra={"middleware": mw.middleware_class.__name__, "priority": mw.priority},
        )

    register_exception_handlers(app)

    for router in routers or []:
        app.include_router(router)

    return app

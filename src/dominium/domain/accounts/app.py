"""Accounts application factory.

Usage::

    from dominium.domain.accounts.app import create_accounts_app

    app = create_accounts_app()

Middleware order (outermost first): RequestId -> JWT auth -> RequestContext
-> route. SQL tables are ensured and identity clients released by the
accounts lifespan hook; logging and tracing by the observability hook.

With ``AUTH_DEV_BYPASS=true`` outside production, tokenless requests act as
the local dev admin. Its profile is seeded at startup when the in-memory store
is in use; a SQL store must already hold it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from dominium.domain.accounts.router import router as accounts_router
from dominium.domain.accounts.services import AccountsServices, build_services
from dominium.domain.accounts.settings import get_accounts_settings
from dominium.foundation.application.contributions import (
    LIFESPAN_PRIORITY_PERSISTENCE,
    LifespanContribution,
    MiddlewareContribution,
)
from dominium.infra.auth.dev_bypass import DEV_ACTOR_ID, dev_actor_account, resolve_dev_bypass
from dominium.infra.auth.middleware.jwt_auth import JWTAuthMiddleware
from dominium.infra.auth.settings import get_auth_settings
from dominium.infra.fastapi import create_app
from dominium.infra.fastapi.middleware.request_context import (
    contribution as request_context_contribution,
)
from dominium.infra.fastapi.middleware.request_id import (
    contribution as request_id_contribution,
)
from dominium.infra.observability import lifespan_contribution as observability_lifespan
from dominium.infra.persistence import InMemoryAccountStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from dominium.foundation.domain.ports.account_store import AccountStorePort
    from dominium.infra.auth.settings import AuthSettings
    from dominium.infra.fastapi.settings import AppSettings

logger = logging.getLogger(__name__)


def _ensure_dev_actor(store: AccountStorePort) -> None:
    if store.find_by_id(DEV_ACTOR_ID) is not None:
        return
    if isinstance(store, InMemoryAccountStore):
        store.add_account(dev_actor_account())
        logger.warning("auth_dev_actor_seeded", extra={"actor_id": DEV_ACTOR_ID})
        return
    # A shared database is never written to implicitly.
    logger.warning(
        "auth_dev_actor_missing",
        extra={"actor_id": DEV_ACTOR_ID, "store": type(store).__name__},
    )


def _accounts_lifespan(
    services: AccountsServices,
    *,
    dev_actor: bool = False,
) -> LifespanContribution:
    @asynccontextmanager
    async def _lifespan(app: Any) -> AsyncIterator[None]:
        for hook in services.startup:
            hook()
        if dev_actor:
            _ensure_dev_actor(services.store)
        logger.info("accounts_services_started")
        try:
            yield
        finally:
            for hook in reversed(services.shutdown):
                hook()
            logger.info("accounts_services_stopped")

    return LifespanContribution(hook=_lifespan, priority=LIFESPAN_PRIORITY_PERSISTENCE)


def create_accounts_app(
    services: AccountsServices | None = None,
    *,
    app_settings: AppSettings | None = None,
    auth_settings: AuthSettings | None = None,
    configure_observability: bool = True,
) -> FastAPI:
    """Create the accounts API.

    Args:
        services: Pre-built services. Built from the environment if None.
        app_settings: FastAPI settings. Loaded from the environment if None.
        auth_settings: JWT settings. Loaded from the environment if None.
        configure_observability: Install logging and tracing on startup.
    """
    services = services or build_services(get_accounts_settings())
    auth = auth_settings or get_auth_settings()
    dev_bypass = resolve_dev_bypass(auth.dev_bypass)

    jwt_contribution = MiddlewareContribution(
        middleware_class=JWTAuthMiddleware,
        priority=150,
        kwargs={
            "jwt_secret": auth.jwt_secret,
            "issuer": auth.issuer,
            "audience": auth.audience,
            "dev_bypass": dev_bypass,
        },
    )

    lifespan_hooks = [_accounts_lifespan(services, dev_actor=dev_bypass)]
    if configure_observability:
        lifespan_hooks.append(observability_lifespan)

    app = create_app(
        app_settings,
        routers=[accounts_router],
        middleware=[request_id_contribution, jwt_contribution, request_context_contribution],
        lifespan_hooks=lifespan_hooks,
    )
    app.state.accounts = services
    return app

"""Dominium Infra FastAPI -- error handlers, middleware, app factory."""

from dominium.infra.fastapi.app_factory import create_app
from dominium.infra.fastapi.error_handlers import (
    ProblemDetail,
    register_exception_handlers,
)
from dominium.infra.fastapi.lifespan import compose_lifespan
from dominium.infra.fastapi.middleware.request_context import RequestContextMiddleware
from dominium.infra.fastapi.middleware.request_id import (
    RequestIdMiddleware,
    get_request_id,
)
from dominium.infra.fastapi.settings import AppSettings, CORSSettings

__all__ = [
    "AppSettings",
    "CORSSettings",
    "ProblemDetail",
    "RequestContextMiddleware",
    "RequestIdMiddleware",
    "compose_lifespan",
    "create_app",
    "get_request_id",
    "register_exception_handlers",
]

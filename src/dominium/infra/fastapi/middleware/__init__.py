"""ASGI middleware for request correlation and context."""

from dominium.infra.fastapi.middleware.request_context import RequestContextMiddleware
from dominium.infra.fastapi.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIdMiddleware,
    get_request_id,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
    "RequestIdMiddleware",
    "get_request_id",
]

"""Authentication middleware."""

from dominium.infra.auth.middleware.jwt_auth import JWTAuthMiddleware

__all__ = ["JWTAuthMiddleware"]

"""JWT authentication middleware for HS256 access tokens.

Validates Bearer tokens on all requests except excluded paths and stores
the decoded claims in ``request.state.jwt_claims``. The extracted
:class:`Principal` only identifies the caller; authorization (admin level,
territory) is resolved by the accounts services from the account store.

Middleware position in stack (LIFO registration order):
  Request -> RequestId -> Auth -> RequestContext -> CORS -> Route

Auth errors are returned as JSONResponse directly because
BaseHTTPMiddleware dispatch cannot propagate exceptions through the
ASGI stack.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import jwt as pyjwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from dominium.foundation.application.context import (
    clear_principal_context,
    set_principal_context,
)
from dominium.foundation.application.contributions import MiddlewareContribution
from dominium.foundation.domain.principal import Principal, PrincipalType
from dominium.infra.auth.dev_bypass import DEV_BYPASS_CLAIMS, resolve_dev_bypass

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)

# Default paths excluded from JWT validation.
_DEFAULT_EXCLUDED_PREFIXES = (
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
)

_PROBLEM_MEDIA_TYPE = "application/problem+json"


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """JWT validation middleware with HS256 signature verification.

    Request flow:
    1. Check if path is excluded -> skip auth
    2. Check dev bypass -> inject synthetic claims if active
    3. Extract Authorization: Bearer <token> header
    4. Validate signature and standard claims (exp, aud, optional iss)
    5. Store decoded claims in request.state.jwt_claims
    6. Set principal context and call next middleware/handler

    Error flow:
    - Missing header -> 401 (missing_token)
    - Malformed header -> 401 (invalid_format)
    - Expired token -> 401 (token_expired)
    - Invalid signature -> 401 (invalid_signature)
    - Invalid claims -> 401 (invalid_claims)
    - Malformed JWT -> 401 (invalid_token)
    - No secret configured -> 503 (service_unavailable)

    All 401 responses include WWW-Authenticate: Bearer header per RFC 6750.
    """

    def __init__(
        self,
        app: Any,
        jwt_secret: str = "",
        issuer: str = "",
        audience: str = "authenticated",
        dev_bypass: bool = False,
        excluded_prefixes: tuple[str, ...] | None = None,
    ) -> None:
        """Initialize authentication middleware.

        Args:
            app: ASGI application (passed by Starlette).
            jwt_secret: HS256 signing secret. Empty if not configured.
            issuer: Expected JWT issuer claim value. Empty skips the check.
            audience: Expected JWT audience claim value.
            dev_bypass: Whether dev bypass was requested. Subject to
                production safety check via resolve_dev_bypass().
            excluded_prefixes: Path prefixes to skip auth on.
        """
        super().__init__(app)
        self._jwt_secret = jwt_secret
        self._issuer = issuer
        self._audience = audience
        self._dev_bypass = resolve_dev_bypass(dev_bypass)
        self._excluded_prefixes = (
            excluded_prefixes if excluded_prefixes is not None else _DEFAULT_EXCLUDED_PREFIXES
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.url.path
        if any(path.startswith(prefix) for prefix in self._excluded_prefixes):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if self._dev_bypass and not auth_header:
            return await self._continue_with(request, call_next, dict(DEV_BYPASS_CLAIMS))

        if not auth_header:
            return self._auth_error(
                request,
                401,
                "missing_token",
                "Authorization header is required",
            )

        if not auth_header.startswith("Bearer "):
            return self._auth_error(
                request,
                401,
                "invalid_format",
                "Authorization header must use Bearer scheme",
            )

        token = auth_header[7:]  # len("Bearer ") == 7
        if not token:
            return self._auth_error(request, 401, "invalid_format", "Bearer token is empty")

        if not self._jwt_secret:
            return self._auth_error(
                request,
                503,
                "service_unavailable",
                "Authentication service not configured",
            )

        required = ["exp", "aud", "sub"]
        if self._issuer:
            required.append("iss")

        try:
            claims = pyjwt.decode(
                token,
                self._jwt_secret,
                algorithms=["HS256"],
                issuer=self._issuer or None,
                audience=self._audience,
                options={"require": required},
            )
        except pyjwt.ExpiredSignatureError:
            return self._auth_error(request, 401, "token_expired", "Token has expired")
        except pyjwt.InvalidIssuerError:
            return self._auth_error(request, 401, "invalid_claims", "Invalid issuer claim")
        except pyjwt.InvalidAudienceError:
            return self._auth_error(request, 401, "invalid_claims", "Invalid audience claim")
        except pyjwt.MissingRequiredClaimError as exc:
            return self._auth_error(
                request,
                401,
                "invalid_claims",
                f"Missing required claim: {exc}",
            )
        except pyjwt.InvalidSignatureError:
            return self._auth_error(
                request,
                401,
                "invalid_signature",
                "Token signature verification failed",
            )
        except pyjwt.DecodeError:
            return self._auth_error(request, 401, "invalid_token", "Token is malformed")
        except pyjwt.InvalidTokenError:
            return self._auth_error(request, 401, "invalid_token", "Token validation failed")
        except Exception:
            logger.exception("jwt_validation_unexpected_error")
            return self._auth_error(request, 401, "invalid_token", "Token validation failed")

        return await self._continue_with(request, call_next, claims)

    async def _continue_with(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
        claims: dict[str, Any],
    ) -> Response:
        request.state.jwt_claims = claims
        try:
            principal = _extract_principal(claims)
        except ValueError as exc:
            return self._auth_error(request, 401, "invalid_claims", str(exc))

        principal_token = set_principal_context(principal)
        try:
            return await call_next(request)
        finally:
            clear_principal_context(principal_token)

    def _auth_error(
        self,
        request: Request,
        status_code: int,
        error_code: str,
        message: str,
    ) -> JSONResponse:
        """Build RFC 7807 + RFC 6750 compliant error response."""
        logger.info(
            "auth_validation_failed",
            extra={
                "error_code": error_code,
                "path": request.url.path,
                "method": request.method,
            },
        )

        headers: dict[str, str] = {}
        if status_code == 401:
            headers["WWW-Authenticate"] = (
                f'Bearer realm="API", error="{error_code}", error_description="{message}"'
            )

        _title_map = {
            401: "Unauthorized",
            403: "Forbidden",
            503: "Service Unavailable",
        }

        return JSONResponse(
            status_code=status_code,
            content={
                "type": f"/errors/{error_code.replace('_', '-')}",
                "title": _title_map.get(status_code, "Error"),
                "status": status_code,
                "detail": message,
                "error_code": error_code.upper(),
                "instance": str(request.url.path),
            },
            media_type=_PROBLEM_MEDIA_TYPE,
            headers=headers,
        )


def _extract_principal(claims: dict[str, Any]) -> Principal:
    """Extract Principal from validated JWT claims.

    ``sub`` is both the identity id and the account id. Roles come from a
    ``roles`` list or a single ``role`` string.

    Raises:
        ValueError: If the ``sub`` claim is missing or empty.
    """
    sub = claims.get("sub")
    if not sub:
        raise ValueError("JWT missing required claim: sub")

    roles: Any = claims.get("roles")
    if roles is None:
        role = claims.get("role")
        roles = [role] if role else []
    elif isinstance(roles, str):
        roles = [roles]

    email = claims.get("email")
    principal_type_str = claims.get("principal_type", "user")

    return Principal(
        subject=str(sub),
        account_id=str(sub),
        email=str(email) if email else None,
        roles=tuple(str(r) for r in roles),
        principal_type=(
            PrincipalType(principal_type_str)
            if principal_type_str in ("user", "service")
            else PrincipalType.USER
        ),
    )


contribution = MiddlewareContribution(
    middleware_class=JWTAuthMiddleware,
    priority=150,  # Security band (100-199)
)

"""Tests for JWTAuthMiddleware: excluded paths, token errors, principal extraction."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt as pyjwt
import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.testclient import TestClient

from dominium.foundation.application.context import get_optional_principal
from dominium.foundation.domain.principal import PrincipalType
from dominium.infra.auth.dev_bypass import DEV_BYPASS_CLAIMS, resolve_dev_bypass
from dominium.infra.auth.middleware.jwt_auth import JWTAuthMiddleware, _extract_principal

if TYPE_CHECKING:
    from starlette.requests import Request

SECRET = "middleware-test-secret-that-is-long-enough"


def _make_app(
    *,
    jwt_secret: str = SECRET,
    issuer: str = "",
    dev_bypass: bool = False,
) -> Starlette:
    """Build a minimal Starlette app with JWTAuthMiddleware."""

    async def whoami(request: Request) -> Response:
        principal = get_optional_principal()
        return JSONResponse(
            {
                "subject": principal.subject if principal else None,
                "email": principal.email if principal else None,
                "roles": list(principal.roles) if principal else [],
                "claims_sub": request.state.jwt_claims.get("sub"),
            }
        )

    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok"})

    app = Starlette(routes=[Route("/whoami", whoami), Route("/health", health)])
    app.add_middleware(
        JWTAuthMiddleware,
        jwt_secret=jwt_secret,
        issuer=issuer,
        audience="authenticated",
        dev_bypass=dev_bypass,
    )
    return app


def _token(
    *,
    secret: str = SECRET,
    expires_in: timedelta = timedelta(minutes=5),
    **claims: Any,
) -> str:
    payload: dict[str, Any] = {
        "sub": "user-1",
        "aud": "authenticated",
        "exp": datetime.now(UTC) + expires_in,
    }
    payload.update(claims)
    return pyjwt.encode({k: v for k, v in payload.items() if v is not None}, secret, "HS256")


def _get(app: Starlette, token: str | None = None, header: str | None = None) -> Any:
    client = TestClient(app, raise_server_exceptions=False)
    headers = {}
    if header is not None:
        headers["Authorization"] = header
    elif token is not None:
        headers["Authorization"] = f"Bearer {token}"
    return client.get("/whoami", headers=headers)


@pytest.mark.unit
class TestExcludedPaths:
    def test_health_path_skips_auth(self) -> None:
        client = TestClient(_make_app(), raise_server_exceptions=False)
        response = client.get("/health")
        assert response.status_code == 200


@pytest.mark.unit
class TestTokenErrors:
    def test_missing_header(self) -> None:
        response = _get(_make_app())
        assert response.status_code == 401
        body = response.json()
        assert body["error_code"] == "MISSING_TOKEN"
        assert body["type"] == "/errors/missing-token"
        assert response.headers["content-type"] == "application/problem+json"
        assert response.headers["WWW-Authenticate"].startswith('Bearer realm="API"')

    def test_non_bearer_scheme(self) -> None:
        response = _get(_make_app(), header="Basic dXNlcjpwYXNz")
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_FORMAT"

    def test_empty_bearer(self) -> None:
        response = _get(_make_app(), header="Bearer ")
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_FORMAT"

    def test_expired_token(self) -> None:
        response = _get(_make_app(), _token(expires_in=timedelta(minutes=-5)))
        assert response.status_code == 401
        assert response.json()["error_code"] == "TOKEN_EXPIRED"

    def test_wrong_signature(self) -> None:
        response = _get(_make_app(), _token(secret="another-secret-entirely-different-value"))
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_SIGNATURE"

    def test_wrong_audience(self) -> None:
        response = _get(_make_app(), _token(aud="somebody-else"))
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CLAIMS"

    def test_missing_subject(self) -> None:
        response = _get(_make_app(), _token(sub=None))
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CLAIMS"

    def test_wrong_issuer(self) -> None:
        app = _make_app(issuer="https://id.dominium.test/auth/v1")
        response = _get(app, _token(iss="https://elsewhere.test"))
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_CLAIMS"

    def test_garbage_token(self) -> None:
        response = _get(_make_app(), "not.a.jwt")
        assert response.status_code == 401
        assert response.json()["error_code"] == "INVALID_TOKEN"

    def test_unconfigured_secret_is_unavailable(self) -> None:
        response = _get(_make_app(jwt_secret=""), _token())
        assert response.status_code == 503
        assert response.json()["error_code"] == "SERVICE_UNAVAILABLE"
        assert "WWW-Authenticate" not in response.headers


@pytest.mark.unit
class TestValidToken:
    def test_principal_available_to_endpoint(self) -> None:
        response = _get(_make_app(), _token(email="agent@dominium.test", role="authenticated"))
        assert response.status_code == 200
        assert response.json() == {
            "subject": "user-1",
            "email": "agent@dominium.test",
            "roles": ["authenticated"],
            "claims_sub": "user-1",
        }

    def test_matching_issuer_accepted(self) -> None:
        issuer = "https://id.dominium.test/auth/v1"
        response = _get(_make_app(issuer=issuer), _token(iss=issuer))
        assert response.status_code == 200


@pytest.mark.unit
class TestDevBypass:
    def test_bypass_injects_synthetic_principal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        response = _get(_make_app(dev_bypass=True))
        assert response.status_code == 200
        assert response.json()["subject"] == DEV_BYPASS_CLAIMS["sub"]

    def test_bypass_blocked_in_production(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        response = _get(_make_app(dev_bypass=True))
        assert response.status_code == 401

    def test_explicit_header_still_validated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        response = _get(_make_app(dev_bypass=True), "not.a.jwt")
        assert response.status_code == 401


@pytest.mark.unit
class TestExtractPrincipal:
    def test_roles_list(self) -> None:
        principal = _extract_principal({"sub": "u", "roles": ["a", "b"]})
        assert principal.roles == ("a", "b")
        assert principal.account_id == "u"

    def test_roles_string(self) -> None:
        assert _extract_principal({"sub": "u", "roles": "a"}).roles == ("a",)

    def test_no_roles(self) -> None:
        assert _extract_principal({"sub": "u"}).roles == ()

    def test_service_principal(self) -> None:
        principal = _extract_principal({"sub": "svc", "principal_type": "service"})
        assert principal.principal_type == PrincipalType.SERVICE

    def test_unknown_principal_type_is_user(self) -> None:
        principal = _extract_principal({"sub": "u", "principal_type": "robot"})
        assert principal.principal_type == PrincipalType.USER

    def test_missing_sub(self) -> None:
        with pytest.raises(ValueError, match="sub"):
            _extract_principal({"email": "x@y.z"})


@pytest.mark.unit
class TestResolveDevBypass:
    @pytest.mark.parametrize("environment", ["development", "staging", "test"])
    def test_allowed_outside_production(
        self, monkeypatch: pytest.MonkeyPatch, environment: str
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", environment)
        assert resolve_dev_bypass(True) is True

    def test_never_active_unless_requested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        assert resolve_dev_bypass(False) is False

    def test_production_lockout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert resolve_dev_bypass(True) is False

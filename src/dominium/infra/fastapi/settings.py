"""Settings for the accounts HTTP surface.

``APP_*`` variables configure the FastAPI instance. ``CORS_*`` variables
choose which browser origins may call the admin endpoints; the methods and
headers those origins may use are fixed to what the accounts routes accept.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ROUTE_METHODS = ("GET", "PATCH", "DELETE", "OPTIONS")
ROUTE_HEADERS = ("Authorization", "Content-Type", "X-Request-ID")


class CORSSettings(BaseSettings):
    """Origins allowed to call the accounts API from a browser.

    ``CORS_ALLOW_ORIGINS`` accepts a comma-separated list.
    """

    model_config = SettingsConfigDict(env_prefix="CORS_", extra="ignore")

    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_credentials: bool = Field(default=False)

    @field_validator("allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @model_validator(mode="after")
    def _no_credentials_for_any_origin(self) -> CORSSettings:
        if self.allow_credentials and "*" in self.allow_origins:
            msg = "allow_credentials needs explicit origins; browsers reject it with '*'"
            raise ValueError(msg)
        return self

    @property
    def allow_methods(self) -> list[str]:
        return list(ROUTE_METHODS)

    @property
    def allow_headers(self) -> list[str]:
        return list(ROUTE_HEADERS)

    @property
    def expose_headers(self) -> list[str]:
        # Callers quote the request id when reporting a failed deletion.
        return ["X-Request-ID"]

    def middleware_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for Starlette's ``CORSMiddleware``."""
        return {
            "allow_origins": self.allow_origins,
            "allow_credentials": self.allow_credentials,
            "allow_methods": self.allow_methods,
            "allow_headers": self.allow_headers,
            "expose_headers": self.expose_headers,
        }


def _package_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("dominium")
    except PackageNotFoundError:
        return "0.0.0"


class AppSettings(BaseSettings):
    """FastAPI instance settings (``APP_`` prefix).

    ``APP_DOCS_ENABLED=false`` hides the Swagger UI, ReDoc and the OpenAPI
    schema together, which is how production deployments run.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    title: str = Field(default="Dominium Accounts")
    version: str = Field(default_factory=_package_version)
    description: str = Field(default="Account lifecycle and authorization service")
    docs_enabled: bool = Field(default=True)
    debug: bool = Field(default=False)
    cors: CORSSettings = Field(default_factory=CORSSettings)

    def fastapi_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for the ``FastAPI`` constructor."""
        docs = self.docs_enabled
        return {
            "title": self.title,
            "version": self.version,
            "description": self.description,
            "debug": self.debug,
            "docs_url": "/docs" if docs else None,
            "redoc_url": "/redoc" if docs else None,
            "openapi_url": "/openapi.json" if docs else None,
        }

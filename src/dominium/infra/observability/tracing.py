"""OpenTelemetry tracing configuration.

Installs a global ``TracerProvider`` with service resource attributes and
a console exporter. With ``OTEL_EXPORTER_TYPE=none`` (the default) the
OpenTelemetry API stays on its no-op provider and the spans opened by the
deletion cascade cost nothing.

Usage:
    from dominium.infra.observability.tracing import configure_tracing, shutdown_tracing

    configure_tracing()
    ...
    shutdown_tracing()
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Kept for shutdown.
_tracer_provider: TracerProvider | None = None


class TracingSettings(BaseSettings):
    """OpenTelemetry tracing configuration from environment variables.

    - OTEL_SERVICE_NAME: Service name for traces (default: dominium-accounts)
    - OTEL_SERVICE_VERSION: Service version (default: unknown)
    - OTEL_EXPORTER_TYPE: console or none (default: none)

    Example:
        >>> TracingSettings().is_enabled
        False
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        populate_by_name=True,
    )

    service_name: str = Field(
        default="dominium-accounts",
        alias="OTEL_SERVICE_NAME",
        description="Service name for trace resource attributes",
    )
    service_version: str = Field(
        default="unknown",
        alias="OTEL_SERVICE_VERSION",
        description="Service version for trace resource attributes",
    )
    exporter_type: str = Field(
        default="none",
        alias="OTEL_EXPORTER_TYPE",
        description="Exporter type: console, none",
    )

    @field_validator("exporter_type", mode="before")
    @classmethod
    def normalize_exporter_type(cls, v: Any) -> str:
        if isinstance(v, str):
            return v.lower()
        return str(v)

    @field_validator("exporter_type")
    @classmethod
    def validate_exporter_type(cls, v: str) -> str:
        valid_types = {"console", "none"}
        if v not in valid_types:
            msg = f"exporter_type must be one of {valid_types}"
            raise ValueError(msg)
        return v

    @property
    def is_enabled(self) -> bool:
        return self.exporter_type != "none"


@lru_cache(maxsize=1)
def get_tracing_settings() -> TracingSettings:
    """Get cached TracingSettings instance.

    Clear cache with ``get_tracing_settings.cache_clear()`` for testing.
    """
    return TracingSettings()


def _create_exporter(settings: TracingSettings) -> SpanExporter:
    if settings.exporter_type == "console":
        return ConsoleSpanExporter()
    msg = f"Unknown exporter type: {settings.exporter_type}"
    raise ValueError(msg)


def configure_tracing(settings: TracingSettings | None = None) -> TracerProvider | None:
    """Configure the global OpenTelemetry TracerProvider.

    Returns the installed provider, or None when tracing is disabled.
    Call after ``configure_logging()``.
    """
    global _tracer_provider

    if settings is None:
        settings = get_tracing_settings()

    if not settings.is_enabled:
        return None

    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "service.version": settings.service_version,
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(_create_exporter(settings)))

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def shutdown_tracing() -> None:
    """Flush pending spans and shut down the provider. Idempotent."""
    global _tracer_provider

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None

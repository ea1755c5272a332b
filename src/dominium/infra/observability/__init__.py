"""Dominium Infra Observability -- structlog logging, audit sink, OpenTelemetry tracing."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from dominium.foundation.application.contributions import (
    LIFESPAN_PRIORITY_OBSERVABILITY,
    LifespanContribution,
)
from dominium.infra.observability.audit_sink import StructlogAuditLog
from dominium.infra.observability.logging import (
    LoggingSettings,
    configure_logging,
    get_logger,
)
from dominium.infra.observability.tracing import (
    TracingSettings,
    configure_tracing,
    shutdown_tracing,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@asynccontextmanager
async def _observability_lifespan(app: Any) -> AsyncIterator[None]:
    """Configure logging and tracing on startup, flush spans on shutdown."""
    configure_logging()
    configure_tracing()
    yield
    shutdown_tracing()


lifespan_contribution = LifespanContribution(
    hook=_observability_lifespan,
    priority=LIFESPAN_PRIORITY_OBSERVABILITY,
)

__all__ = [
    "LoggingSettings",
    "StructlogAuditLog",
    "TracingSettings",
    "configure_logging",
    "configure_tracing",
    "get_logger",
    "lifespan_contribution",
    "shutdown_tracing",
]

"""Accounts REST API router.

Endpoints:
    DELETE /accounts/{account_id}        delete an account (200 / 207 / 500)
    GET    /agents/{agent_id}/verify     badge state + whether the caller may toggle it
    PATCH  /agents/{agent_id}/verify     grant or revoke the verified badge
    PATCH  /agents/{agent_id}/premium    grant or revoke the premium badge
    GET    /health                       liveness and dependency checks

The actor is the principal set by the auth middleware. Authorization,
protected-account and not-found errors propagate to the RFC 7807 handlers.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from dominium.domain.accounts.deletion import DeletionStatus
from dominium.domain.accounts.services import AccountsServices
from dominium.domain.accounts.verification import BadgeChange, VerificationAction
from dominium.infra.auth.dependencies import OptionalPrincipal

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])

_DELETION_STATUS_CODES = {
    DeletionStatus.SUCCESS: 200,
    DeletionStatus.PARTIAL: 207,
    DeletionStatus.FAILED: 500,
}


def get_services(request: Request) -> AccountsServices:
    """Accounts services attached to the application by ``create_accounts_app``."""
    return request.app.state.accounts  # type: ignore[no-any-return]


Services = Annotated[AccountsServices, Depends(get_services)]


# -- Request models -----------------------------------------------------------


class VerifyAgentRequest(BaseModel):
    action: VerificationAction


class PremiumAgentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_premium_agent: bool = Field(alias="isPremiumAgent")


# -- Endpoints ----------------------------------------------------------------


@router.delete("/accounts/{account_id}")
def delete_account(
    account_id: str,
    principal: OptionalPrincipal,
    services: Services,
) -> JSONResponse:
    """Delete an account and everything that depends on it.

    Partial success is reported with 207 Multi-Status and total failure
    with 500; both carry the full result body.
    """
    result = services.deletion.delete_account(principal, account_id)
    assert result.status is not None
    return JSONResponse(
        status_code=_DELETION_STATUS_CODES[result.status],
        content=result.to_dict(),
    )


@router.get("/agents/{agent_id}/verify")
def get_agent_verification(
    agent_id: str,
    principal: OptionalPrincipal,
    services: Services,
) -> dict[str, Any]:
    """Current badge state and whether the caller may toggle it."""
    status = services.verification.status(principal, agent_id)
    return {"agent": status.agent.to_dict(), "canToggle": status.can_toggle}


@router.patch("/agents/{agent_id}/verify")
def update_agent_verification(
    agent_id: str,
    body: VerifyAgentRequest,
    principal: OptionalPrincipal,
    services: Services,
) -> dict[str, Any]:
    """Grant or revoke the verified-agent badge."""
    change = services.verification.apply(principal, agent_id, body.action)
    return _change_response(change)


@router.patch("/agents/{agent_id}/premium")
def update_agent_premium(
    agent_id: str,
    body: PremiumAgentRequest,
    principal: OptionalPrincipal,
    services: Services,
) -> dict[str, Any]:
    """Grant or revoke the premium-agent badge."""
    change = services.verification.set_premium(principal, agent_id, body.is_premium_agent)
    return _change_response(change)


@router.get("/health")
def health(services: Services) -> JSONResponse:
    """Liveness plus one entry per configured dependency check.

    Returns 503 when any dependency check fails.
    """
    checks: dict[str, dict[str, str]] = {}
    for name, check in services.health_checks.items():
        try:
            check()
        except Exception as exc:
            logger.warning("health_check_failed", extra={"check": name, "error": str(exc)})
            checks[name] = {"status": "error", "detail": type(exc).__name__}
        else:
            checks[name] = {"status": "ok"}

    all_ok = all(c["status"] == "ok" for c in checks.values())
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "ok" if all_ok else "degraded", "checks": checks},
    )


# -- Helpers ------------------------------------------------------------------


def _change_response(change: BadgeChange) -> dict[str, Any]:
    return {
        "agent": change.agent.to_dict(),
        "actor": change.actor.to_dict(),
        "action": change.action,
    }

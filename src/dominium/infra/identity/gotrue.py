"""HTTP client for a GoTrue-compatible identity admin API.

Implements :class:`IdentityProviderPort` with a sync ``httpx.Client``:

- ``GET    /admin/users/{id}``: lookup (404 means absent)
- ``POST   /admin/users/{id}/logout``: revoke every session
- ``DELETE /admin/users/{id}``: delete, body ``{"should_soft_delete": false}``

Deleting an identity that is already gone is treated as success. Any other
non-2xx response, and any transport error, raises
:class:`IdentityProviderError` so the caller's retry policy can decide
what to do next.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dominium.foundation.domain.account_value_objects import IdentityRecord
from dominium.foundation.domain.ports.identity_provider import IdentityProviderError

logger = logging.getLogger(__name__)


class GoTrueIdentityProvider:
    """Identity admin API client.

    Supports a shared ``httpx.Client`` (caller manages its lifecycle, handy
    for tests with ``httpx.MockTransport``) or an internal one created lazily
    and released by :meth:`close`.

    Args:
        base_url: Auth server base URL.
        service_role_key: Service-role key sent as bearer token and apikey header.
        timeout: HTTP request timeout in seconds.
        client: Optional shared httpx.Client instance.
    """

    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_role_key = service_role_key
        self._timeout = timeout
        self._external_client = client is not None
        self._client: httpx.Client | None = client

    def find_by_id(self, identity_id: str) -> IdentityRecord | None:
        response = self._request("GET", f"/admin/users/{identity_id}", operation="find_by_id")
        if response.status_code == 404:
            return None
        self._raise_for_status(response, "find_by_id")
        payload: dict[str, Any] = response.json()
        return IdentityRecord(id=str(payload.get("id", identity_id)), email=payload.get("email"))

    def exists(self, identity_id: str) -> bool:
        return self.find_by_id(identity_id) is not None

    def delete_identity(self, identity_id: str) -> None:
        self._delete(identity_id, operation="delete_identity")

    def invalidate_sessions(self, identity_id: str) -> None:
        response = self._request(
            "POST",
            f"/admin/users/{identity_id}/logout",
            operation="invalidate_sessions",
            json={"scope": "global"},
        )
        if response.status_code == 404:
            return
        self._raise_for_status(response, "invalidate_sessions")
        logger.info("identity_sessions_invalidated", extra={"identity_id": identity_id})

    def force_delete_identity(self, identity_id: str) -> None:
        # Hard delete without the soft-delete fallback; the provider also
        # drops linked identities and factors.
        self._delete(identity_id, operation="force_delete_identity", force=True)

    def close(self) -> None:
        """Close the internal client if we own it."""
        if self._client is not None and not self._external_client:
            self._client.close()
            self._client = None

    def _delete(self, identity_id: str, *, operation: str, force: bool = False) -> None:
        params = {"force": "true"} if force else None
        response = self._request(
            "DELETE",
            f"/admin/users/{identity_id}",
            operation=operation,
            json={"should_soft_delete": False},
            params=params,
        )
        if response.status_code == 404:
            logger.debug("identity_already_absent", extra={"identity_id": identity_id})
            return
        self._raise_for_status(response, operation)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client()
        return self._client

    def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return self._get_client().request(
                method,
                f"{self._base_url}{path}",
                json=json,
                params=params,
                headers={
                    "Authorization": f"Bearer {self._service_role_key}",
                    "apikey": self._service_role_key,
                },
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "identity_provider_transport_error",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise IdentityProviderError(
                f"Identity provider unreachable: {exc}",
                operation=operation,
            ) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("msg") or body.get("message") or body.get("error") or ""
        else:
            detail = response.text
        logger.warning(
            "identity_provider_request_failed",
            extra={"operation": operation, "status": response.status_code},
        )
        raise IdentityProviderError(
            f"Identity provider returned {response.status_code}: {detail}",
            operation=operation,
            status_code=response.status_code,
        )

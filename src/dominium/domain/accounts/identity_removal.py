"""Layered identity deletion with a structured retry policy.

Identity providers refuse deletion while an identity still has live
sessions or is referenced elsewhere. Removal therefore walks through
increasingly forceful layers until one succeeds:

1. ``direct``: plain delete
2. ``verify_absent``: if the identity is already gone, that counts as removed
3. ``invalidate_sessions``: revoke all sessions, then delete again
4. ``force``: hard delete

The caller gets a typed :class:`IdentityDeletionOutcome` back; nothing is
raised when every layer fails.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from dominium.foundation.domain.ports.identity_provider import IdentityProviderPort

logger = logging.getLogger(__name__)


class IdentityDeletionLayer(StrEnum):
    """Fallback layer used to remove an identity."""

    DIRECT = "direct"
    VERIFY_ABSENT = "verify_absent"
    INVALIDATE_SESSIONS = "invalidate_sessions"
    FORCE = "force"


LAYER_ORDER: tuple[IdentityDeletionLayer, ...] = (
    IdentityDeletionLayer.DIRECT,
    IdentityDeletionLayer.VERIFY_ABSENT,
    IdentityDeletionLayer.INVALIDATE_SESSIONS,
    IdentityDeletionLayer.FORCE,
)


@dataclass(frozen=True, slots=True)
class IdentityRetryPolicy:
    """Retry policy for identity deletion.

    Attributes:
        max_attempts_per_layer: Attempts made in each layer before moving on.
        backoff_seconds: Delay before the second attempt overall.
        backoff_multiplier: Growth factor applied to each further delay.
    """

    max_attempts_per_layer: int = 1
    backoff_seconds: float = 0.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts_per_layer < 1:
            msg = "max_attempts_per_layer must be at least 1"
            raise ValueError(msg)
        if self.backoff_seconds < 0:
            msg = "backoff_seconds must not be negative"
            raise ValueError(msg)
        if self.backoff_multiplier < 1:
            msg = "backoff_multiplier must be at least 1"
            raise ValueError(msg)

    def delay_for(self, retry_index: int) -> float:
        """Delay before retry number ``retry_index`` (0-based)."""
        return self.backoff_seconds * (self.backoff_multiplier**retry_index)


@dataclass(frozen=True, slots=True)
class IdentityAttempt:
    """One attempt at one layer. ``error`` is None when the attempt succeeded."""

    layer: IdentityDeletionLayer
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class IdentityDeletionOutcome:
    """Result of :meth:`IdentityRemover.remove`."""

    identity_id: str
    removed: bool
    layer: IdentityDeletionLayer | None
    attempts: tuple[IdentityAttempt, ...]

    @property
    def exhausted(self) -> bool:
        """True when every layer was tried without success."""
        return not self.removed

    @property
    def layers_attempted(self) -> list[str]:
        seen: list[str] = []
        for attempt in self.attempts:
            if attempt.layer.value not in seen:
                seen.append(attempt.layer.value)
        return seen


class _IdentityStillPresent(Exception):
    pass


class IdentityRemover:
    """Drives an identity through the deletion layers under a retry policy."""

    def __init__(
        self,
        provider: IdentityProviderPort,
        policy: IdentityRetryPolicy | None = None,
    ) -> None:
        self._provider = provider
        self._policy = policy or IdentityRetryPolicy()
        self._layer_actions: dict[IdentityDeletionLayer, Callable[[str], None]] = {
            IdentityDeletionLayer.DIRECT: self._delete_direct,
            IdentityDeletionLayer.VERIFY_ABSENT: self._verify_absent,
            IdentityDeletionLayer.INVALIDATE_SESSIONS: self._invalidate_then_delete,
            IdentityDeletionLayer.FORCE: self._force_delete,
        }

    @property
    def policy(self) -> IdentityRetryPolicy:
        return self._policy

    def remove(self, identity_id: str) -> IdentityDeletionOutcome:
        """Remove an identity, falling through the layers until one succeeds.

        Args:
            identity_id: Identity to remove.

        Returns:
            Outcome naming the succeeding layer, or exhausted.
        """
        attempts: list[IdentityAttempt] = []
        for layer in LAYER_ORDER:
            for _ in range(self._policy.max_attempts_per_layer):
                if attempts:
                    delay = self._policy.delay_for(len(attempts) - 1)
                    if delay > 0:
                        time.sleep(delay)
                try:
                    self._layer_actions[layer](identity_id)
                except Exception as exc:
                    error = str(exc) or type(exc).__name__
                    attempts.append(IdentityAttempt(layer=layer, error=error))
                    logger.warning(
                        "identity_deletion_attempt_failed",
                        extra={
                            "identity_id": identity_id,
                            "layer": layer.value,
                            "attempt": len(attempts),
                            "error_type": type(exc).__name__,
                        },
                    )
                    continue
                attempts.append(IdentityAttempt(layer=layer))
                logger.info(
                    "identity_deleted",
                    extra={
                        "identity_id": identity_id,
                        "layer": layer.value,
                        "attempts": len(attempts),
                    },
                )
                return IdentityDeletionOutcome(
                    identity_id=identity_id,
                    removed=True,
                    layer=layer,
                    attempts=tuple(attempts),
                )

        logger.error(
            "identity_deletion_exhausted",
            extra={"identity_id": identity_id, "attempts": len(attempts)},
        )
        return IdentityDeletionOutcome(
            identity_id=identity_id,
            removed=False,
            layer=None,
            attempts=tuple(attempts),
        )

    def _delete_direct(self, identity_id: str) -> None:
        self._provider.delete_identity(identity_id)

    def _verify_absent(self, identity_id: str) -> None:
        if self._provider.exists(identity_id):
            raise _IdentityStillPresent("identity still present")

    def _invalidate_then_delete(self, identity_id: str) -> None:
        self._provider.invalidate_sessions(identity_id)
        self._provider.delete_identity(identity_id)

    def _force_delete(self, identity_id: str) -> None:
        self._provider.force_delete_identity(identity_id)

"""Account deletion orchestration.

Coordinates the irreversible removal of an account across the account store
and the identity provider.

Protocol (one forward-only run per call):
1. Authorizing: actor present, actor profile loaded, privilege checked
2. Fetching: target from profile store, tombstone, or identity store (orphan)
3. InvariantChecking: protected account first, then territory
4. Cascading: declared manifest, children before parents, each step isolated
5. CounterAdjusting: decrement the promo counter if this run claimed the redemption
6. Aggregating: success / partial / failed
7. Terminal: audit record emitted whatever the outcome

Authorization, protected-account and not-found errors are raised before any
mutation. Everything after that is recorded in the :class:`DeletionResult`
and never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from dominium.domain.accounts.cascade import (
    DEFAULT_CASCADE_MANIFEST,
    CascadeCategory,
    CascadeContext,
    validate_manifest,
)
from dominium.domain.accounts.permissions import (
    DELETE_ACCOUNT,
    authorize_actor,
    authorize_territory,
)
from dominium.foundation.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DependencyStepError,
    DomainError,
    IdentityDeletionExhaustedError,
    InvalidStateTransitionError,
    NotFoundError,
    ProtectedResourceError,
)

if TYPE_CHECKING:
    from dominium.domain.accounts.audit import AuditTrail
    from dominium.domain.accounts.cascade import CascadeStep
    from dominium.domain.accounts.counters import CounterAdjuster
    from dominium.domain.accounts.identity_removal import IdentityRemover
    from dominium.domain.accounts.permissions import PermissionResolver
    from dominium.domain.accounts.policy import ProtectedAccountPolicy
    from dominium.foundation.domain.account_value_objects import (
        Account,
        IdentityRecord,
        PromoRedemption,
    )
    from dominium.foundation.domain.permissions import PermissionSet
    from dominium.foundation.domain.ports.account_store import AccountStorePort
    from dominium.foundation.domain.ports.identity_provider import IdentityProviderPort
    from dominium.foundation.domain.principal import Principal

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class DeletionPhase(StrEnum):
    """Phase of a deletion run. Transitions only move forward."""

    AUTHORIZING = "authorizing"
    FETCHING = "fetching"
    INVARIANT_CHECKING = "invariant_checking"
    CASCADING = "cascading"
    COUNTER_ADJUSTING = "counter_adjusting"
    AGGREGATING = "aggregating"
    TERMINAL = "terminal"


_PHASE_ORDER = list(DeletionPhase)

REPORTED_COUNTS = ("listings", "favorites", "legacyFavorites")


class DeletionStatus(StrEnum):
    """Overall status of a deletion run."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class StepFailure:
    """A failure recorded during a run.

    Attributes:
        step: Cascade step key, or "specialStatus" / "counterAdjustment".
        error_code: Error code of the recorded domain error.
        message: Human-readable description.
        category: "dependent", "profile", "identity" or "counter".
    """

    step: str
    error_code: str
    message: str
    category: str

    def to_dict(self) -> dict[str, str]:
        return {
            "step": self.step,
            "errorCode": self.error_code,
            "message": self.message,
        }


@dataclass
class DeletionResult:
    """Per-run result, mutated as steps complete and returned once.

    Attributes:
        target_id: Account being deleted.
        deleted: Ordered map of resource key to count (or bool for profile/identity).
        status: Overall status, set when aggregating.
        special_status: True if the target held a special-status tier.
        counter_adjusted: Whether the promo counter was decremented. None when
            the target had no special status.
        orphan: True when only an identity record existed.
        identity_layer: Layer that removed the identity, if any.
        failures: Failures recorded during the run.
        phase: Current phase.
    """

    target_id: str
    deleted: dict[str, int | bool] = field(default_factory=dict)
    status: DeletionStatus | None = None
    special_status: bool = False
    counter_adjusted: bool | None = None
    orphan: bool = False
    identity_layer: str | None = None
    failures: list[StepFailure] = field(default_factory=list)
    phase: DeletionPhase = DeletionPhase.AUTHORIZING

    def advance(self, phase: DeletionPhase) -> None:
        """Move to a later phase.

        Raises:
            InvalidStateTransitionError: If ``phase`` is not after the current one.
        """
        if _PHASE_ORDER.index(phase) <= _PHASE_ORDER.index(self.phase):
            raise InvalidStateTransitionError(
                f"Cannot move deletion run from {self.phase} to {phase}",
                current_phase=self.phase.value,
                target_phase=phase.value,
            )
        self.phase = phase

    def record_failure(self, step: str, error: DomainError, category: str) -> None:
        self.failures.append(
            StepFailure(
                step=step,
                error_code=error.error_code,
                message=error.message,
                category=category,
            )
        )

    @property
    def profile_removed(self) -> bool:
        return self.deleted.get("profile") is True

    @property
    def identity_removed(self) -> bool:
        return self.deleted.get("identity") is True

    @property
    def dependent_failed(self) -> bool:
        return any(f.category == CascadeCategory.DEPENDENT for f in self.failures)

    def to_dict(self) -> dict[str, Any]:
        """Response-shaped representation (camelCase keys).

        The headline counts are always present, as 0 on the orphan path.
        """
        deleted: dict[str, int | bool] = dict.fromkeys(REPORTED_COUNTS, 0)
        deleted.update(self.deleted)
        body: dict[str, Any] = {
            "status": self.status.value if self.status else None,
            "deleted": deleted,
            "orphan": self.orphan,
            "failures": [f.to_dict() for f in self.failures],
        }
        if self.special_status:
            body["specialStatus"] = True
            body["counterAdjusted"] = bool(self.counter_adjusted)
        if self.identity_layer is not None:
            body["identityLayer"] = self.identity_layer
        return body


def aggregate_status(
    profile_removed: bool,
    identity_removed: bool,
    dependent_failed: bool,
) -> DeletionStatus:
    """Overall status from the profile/identity outcomes and dependent failures."""
    if profile_removed and identity_removed and not dependent_failed:
        return DeletionStatus.SUCCESS
    if not profile_removed and not identity_removed:
        return DeletionStatus.FAILED
    return DeletionStatus.PARTIAL


@dataclass(frozen=True, slots=True)
class _Target:
    account: Account | None
    identity: IdentityRecord | None
    from_tombstone: bool = False

    @property
    def orphan(self) -> bool:
        return self.account is None

    @property
    def email(self) -> str | None:
        if self.account is not None and self.account.email:
            return self.account.email
        return self.identity.email if self.identity is not None else None


class DeletionOrchestrator:
    """Deletes an account and everything that depends on it.

    Attributes:
        _store: Account store.
        _identity: Identity provider (orphan lookup and the email of legacy profiles).
        _identity_remover: Layered identity deletion.
        _counters: Redemption claim and counter adjustment.
        _resolver: Permission resolution.
        _policy: Protected account policy.
        _audit: Audit trail.
        _manifest: Ordered cascade steps.
    """

    def __init__(
        self,
        store: AccountStorePort,
        identity: IdentityProviderPort,
        identity_remover: IdentityRemover,
        counters: CounterAdjuster,
        resolver: PermissionResolver,
        policy: ProtectedAccountPolicy,
        audit: AuditTrail,
        manifest: tuple[CascadeStep, ...] = DEFAULT_CASCADE_MANIFEST,
    ) -> None:
        validate_manifest(manifest)
        self._store = store
        self._identity = identity
        self._identity_remover = identity_remover
        self._counters = counters
        self._resolver = resolver
        self._policy = policy
        self._audit = audit
        self._manifest = manifest

    def delete_account(self, actor: Principal | None, target_id: str) -> DeletionResult:
        """Delete a target account on behalf of an actor.

        Args:
            actor: Authenticated principal, or None.
            target_id: Account to delete.

        Returns:
            The run's DeletionResult, in terminal phase.

        Raises:
            AuthenticationError: No actor.
            AuthorizationError: Insufficient privilege or territory mismatch.
            ProtectedResourceError: Target is the protected account.
            NotFoundError: Target absent from every store.
        """
        result = DeletionResult(target_id=target_id)
        actor_id = actor.account_id if actor is not None else None

        try:
            permissions = self._authorize_actor(actor)
            result.advance(DeletionPhase.FETCHING)
            target = self._fetch_target(target_id)
            result.advance(DeletionPhase.INVARIANT_CHECKING)
            self._check_invariants(permissions, target, target_id)
        except DomainError as exc:
            self._audit.record_decision(
                DELETE_ACCOUNT.name,
                actor_id,
                target_id,
                granted=False,
                reason=exc.error_code,
                details={"phase": result.phase.value},
            )
            logger.info(
                "account_deletion_rejected",
                extra={
                    "actor_id": actor_id,
                    "target_id": target_id,
                    "error_code": exc.error_code,
                    "phase": result.phase.value,
                },
            )
            raise

        self._audit.record_decision(
            DELETE_ACCOUNT.name,
            actor_id,
            target_id,
            granted=True,
            details={
                "admin_level": permissions.admin_level.value,
                "scope": permissions.scope.kind.value,
                "orphan": target.orphan,
            },
        )
        logger.info(
            "account_deletion_started",
            extra={
                "actor_id": actor_id,
                "target_id": target_id,
                "orphan": target.orphan,
                "rerun": target.from_tombstone,
            },
        )

        result.advance(DeletionPhase.CASCADING)
        if target.orphan:
            self._run_orphan_cleanup(result, target_id)
            result.advance(DeletionPhase.AGGREGATING)
            # No profile exists, so it counts as already absent.
            result.status = aggregate_status(True, result.identity_removed, False)
        else:
            assert target.account is not None
            ctx = self._build_context(result, target.account)
            self._run_cascade(result, ctx)
            result.advance(DeletionPhase.COUNTER_ADJUSTING)
            self._adjust_counter(result, ctx)
            result.advance(DeletionPhase.AGGREGATING)
            result.status = aggregate_status(
                result.profile_removed,
                result.identity_removed,
                result.dependent_failed,
            )

        result.advance(DeletionPhase.TERMINAL)
        self._audit.record_deletion(
            actor_id,
            target_id,
            status=result.status.value,
            details=result.to_dict(),
        )
        logger.info(
            "account_deletion_completed",
            extra={
                "actor_id": actor_id,
                "target_id": target_id,
                "status": result.status.value,
                "deleted": dict(result.deleted),
                "failure_count": len(result.failures),
            },
        )
        return result

    # -- authorization --------------------------------------------------------

    def _authorize_actor(self, actor: Principal | None) -> PermissionSet:
        if actor is None:
            raise AuthenticationError(
                "Authentication is required to delete accounts",
                auth_error="invalid_request",
            )
        actor_account = self._store.find_by_id(actor.account_id)
        if actor_account is None:
            raise AuthorizationError(
                "Acting account has no profile",
                context={"actor_id": actor.account_id},
            )
        permissions = self._resolver.resolve_for(actor_account)
        authorize_actor(permissions, DELETE_ACCOUNT)
        return permissions

    def _fetch_target(self, target_id: str) -> _Target:
        account = self._store.find_by_id(target_id)
        if account is not None:
            return _Target(account=account, identity=self._identity_without_email(account))
        tombstone = self._store.find_tombstone(target_id)
        if tombstone is not None:
            return _Target(
                account=tombstone,
                identity=self._identity_without_email(tombstone),
                from_tombstone=True,
            )
        identity = self._identity.find_by_id(target_id)
        if identity is not None:
            return _Target(account=None, identity=identity)
        raise NotFoundError("Account", target_id)

    def _identity_without_email(self, account: Account) -> IdentityRecord | None:
        # Legacy profiles may lack an email; the protected check then uses the identity's.
        if account.email:
            return None
        return self._identity.find_by_id(account.id)

    def _check_invariants(
        self,
        permissions: PermissionSet,
        target: _Target,
        target_id: str,
    ) -> None:
        if self._policy.matches(target.email):
            raise ProtectedResourceError(DELETE_ACCOUNT.name, target_id)
        if target.orphan:
            # No profile, so no territory to check.
            return
        assert target.account is not None
        authorize_territory(permissions, target.account.territory_id, DELETE_ACCOUNT)

    # -- cascade --------------------------------------------------------------

    def _build_context(self, result: DeletionResult, account: Account) -> CascadeContext:
        redemption: PromoRedemption | None = None
        if account.has_special_status:
            result.special_status = True
            try:
                redemption = self._store.find_redemption(account.id)
            except Exception as exc:
                error = DependencyStepError("specialStatus", exc)
                result.record_failure("specialStatus", error, "counter")
                logger.exception(
                    "special_status_snapshot_failed",
                    extra={"target_id": account.id},
                )
        return CascadeContext(
            account=account,
            store=self._store,
            identity_remover=self._identity_remover,
            counters=self._counters,
            redemption=redemption,
        )

    def _run_cascade(self, result: DeletionResult, ctx: CascadeContext) -> None:
        for step in self._manifest:
            with tracer.start_as_current_span(
                f"account_deletion.{step.key}",
                attributes={
                    "account.id": ctx.account.id,
                    "cascade.step": step.key,
                    "cascade.category": step.category.value,
                },
            ) as span:
                try:
                    value = step.action(ctx)
                except Exception as exc:
                    error = DependencyStepError(step.key, exc)
                    result.deleted[step.key] = (
                        0 if step.category == CascadeCategory.DEPENDENT else False
                    )
                    result.record_failure(step.key, error, step.category.value)
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, error.message))
                    logger.exception(
                        "cascade_step_failed",
                        extra={
                            "target_id": ctx.account.id,
                            "step": step.key,
                            "description": step.description,
                        },
                    )
                    continue
                result.deleted[step.key] = value
                span.set_attribute("cascade.result", value)
                logger.debug(
                    "cascade_step_completed",
                    extra={"target_id": ctx.account.id, "step": step.key, "result": value},
                )
            if step.category == CascadeCategory.IDENTITY:
                self._note_identity_outcome(result, ctx)

    def _run_orphan_cleanup(self, result: DeletionResult, target_id: str) -> None:
        result.orphan = True
        result.deleted["profile"] = False
        with tracer.start_as_current_span(
            "account_deletion.identity",
            attributes={"account.id": target_id, "cascade.orphan": True},
        ):
            outcome = self._identity_remover.remove(target_id)
        result.deleted["identity"] = outcome.removed
        if outcome.removed:
            result.identity_layer = outcome.layer.value if outcome.layer else None
        else:
            error = IdentityDeletionExhaustedError(target_id, outcome.layers_attempted)
            result.record_failure("identity", error, CascadeCategory.IDENTITY.value)

    @staticmethod
    def _note_identity_outcome(result: DeletionResult, ctx: CascadeContext) -> None:
        outcome = ctx.identity_outcome
        if outcome is None:
            return
        if outcome.removed:
            result.identity_layer = outcome.layer.value if outcome.layer else None
            return
        error = IdentityDeletionExhaustedError(outcome.identity_id, outcome.layers_attempted)
        result.record_failure("identity", error, CascadeCategory.IDENTITY.value)

    def _adjust_counter(self, result: DeletionResult, ctx: CascadeContext) -> None:
        if not result.special_status:
            return
        result.counter_adjusted = False
        if ctx.redemption is None or not ctx.redemption_claimed:
            return
        try:
            self._counters.decrement(ctx.redemption.promo_code_id)
        except Exception as exc:
            error = DependencyStepError("counterAdjustment", exc)
            result.record_failure("counterAdjustment", error, "counter")
            logger.exception(
                "promo_counter_adjustment_failed",
                extra={
                    "target_id": ctx.account.id,
                    "promo_code_id": ctx.redemption.promo_code_id,
                },
            )
            return
        result.counter_adjusted = True

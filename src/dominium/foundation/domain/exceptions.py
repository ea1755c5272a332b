"""Domain exception hierarchy for type-safe error handling.

Exceptions carry a machine-readable error code and structured context so the
HTTP layer can translate them into RFC 7807 responses and the logging layer
can emit them without string parsing.

Authorization-family errors (AuthenticationError, AuthorizationError,
ProtectedResourceError, NotFoundError) are raised before any state changes.
Cascade errors (DependencyStepError, IdentityDeletionExhaustedError) are
never raised to callers: the deletion orchestrator records them in its
result.

Example:
    >>> from dominium.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("Account", "7f1d1f5e-2b8e-4a43-9d8e-1c0b8e9c2a11")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uuid import UUID

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "DependencyStepError",
    "DomainError",
    "IdentityDeletionExhaustedError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "ProtectedResourceError",
    "ValidationError",
    "WrongAccountRoleError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (account IDs, step names).

    Example:
        >>> raise DomainError("Operation failed", context={"account_id": "123"})
        DomainError: Operation failed (account_id=123)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist in any store.

    Maps to HTTP 404 Not Found.

    Attributes:
        error_code: "RESOURCE_NOT_FOUND" (class constant).
        resource_type: Type of missing resource.
        resource_id: Identifier of missing resource.
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID | str,
        **extra_context: Any,
    ) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "Account", "Agent").
            resource_id: Identifier of missing resource. UUID is converted to string.
            **extra_context: Additional debugging context.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class ValidationError(DomainError):
    """Raised when input fails domain validation rules.

    Maps to HTTP 422 Unprocessable Entity.

    Attributes:
        error_code: "VALIDATION_ERROR" (class constant).
        field: Field path that failed validation.
        reason: Human-readable validation failure reason.

    Example:
        >>> raise ValidationError("action", "Unknown verification action")
        ValidationError: Validation failed for 'action': Unknown verification action
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            field: Field path that failed validation.
            reason: Human-readable validation failure reason.
            **extra_context: Additional debugging context.
        """
        self.field = field
        self.reason = reason
        message = f"Validation failed for '{field}': {reason}"
        context = {
            "field": field,
            "reason": reason,
            **extra_context,
        }
        super().__init__(message, context)


class WrongAccountRoleError(DomainError):
    """Raised when an operation targets an account of the wrong role.

    Unlike :class:`ValidationError` the request itself is well formed; the
    target just cannot take the operation. Maps to HTTP 400 Bad Request
    through the generic domain error handler.

    Example:
        >>> raise WrongAccountRoleError("agent-7", expected="agent", actual="buyer")
    """

    error_code: str = "WRONG_ACCOUNT_ROLE"

    def __init__(self, account_id: str, *, expected: str, actual: str) -> None:
        self.account_id = account_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Target account is not an {expected}",
            {"account_id": account_id, "expected_role": expected, "role": actual},
        )


class ConflictError(DomainError):
    """Raised when an operation conflicts with current system state.

    Maps to HTTP 409 Conflict.

    Attributes:
        error_code: "CONFLICT" (class constant).
        reason: Description of the conflict.
    """

    error_code: str = "CONFLICT"

    def __init__(
        self,
        reason: str,
        **context: Any,
    ) -> None:
        """Initialize conflict error.

        Args:
            reason: Description of conflict.
            **context: Additional debugging context.
        """
        self.reason = reason
        message = f"Conflict: {reason}"
        super().__init__(message, context)


class InvalidStateTransitionError(ConflictError):
    """Raised when a state machine transition is not allowed.

    The deletion run is forward-only; moving back to an earlier phase
    raises this error.

    Example:
        >>> raise InvalidStateTransitionError(
        ...     "Cannot move deletion run from cascading to authorizing"
        ... )
    """

    error_code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize invalid state transition error.

        Args:
            message: Description of the invalid transition attempt.
            **context: Additional debugging context (e.g., current_phase, target_phase).
        """
        super().__init__(message, **context)


class AuthenticationError(DomainError):
    """Raised when no authenticated actor is present or the token is invalid.

    Maps to HTTP 401 Unauthorized. All 401 responses MUST include a
    WWW-Authenticate header per RFC 6750.

    Attributes:
        error_code: Machine-readable error code (e.g., "MISSING_TOKEN").
        auth_error: RFC 6750 error code for WWW-Authenticate header.

    Example:
        >>> raise AuthenticationError("Please log in", auth_error="invalid_request",
        ...     error_code="MISSING_ACTOR")
    """

    error_code: str = "AUTHENTICATION_ERROR"

    def __init__(
        self,
        message: str,
        auth_error: str = "invalid_token",
        error_code: str = "AUTHENTICATION_ERROR",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize authentication error.

        Args:
            message: Human-readable error description.
            auth_error: RFC 6750 error code for WWW-Authenticate header.
            error_code: Machine-readable error code for client handling.
            context: Structured debugging information.
        """
        self.auth_error = auth_error
        self.error_code = error_code
        super().__init__(message, context)


class AuthorizationError(DomainError):
    """Raised when an authenticated actor lacks the required privilege.

    Maps to HTTP 403 Forbidden. Covers both insufficient admin level and
    territory mismatch.

    Example:
        >>> raise AuthorizationError("Only super or owner admins can delete accounts")
    """

    error_code: str = "AUTHORIZATION_ERROR"


class ProtectedResourceError(AuthorizationError):
    """Raised when the target is the protected account.

    Maps to HTTP 403 Forbidden. Always fatal and checked before any other
    business rule, whatever the actor's privilege.

    Attributes:
        error_code: "PROTECTED_RESOURCE" (class constant).
        operation: The operation that was refused.
    """

    error_code: str = "PROTECTED_RESOURCE"

    def __init__(self, operation: str, target_id: str) -> None:
        """Initialize protected resource error.

        Args:
            operation: Name of the refused operation (e.g., "delete_account").
            target_id: Identifier of the protected target.
        """
        self.operation = operation
        message = f"The protected account cannot be modified or deleted ({operation})"
        super().__init__(message, {"operation": operation, "target_id": target_id})


class DependencyStepError(DomainError):
    """A single cascade step failed.

    Recorded in the deletion result and logged; never propagated.

    Attributes:
        error_code: "DEPENDENCY_STEP_FAILED" (class constant).
        step: Cascade step key (e.g., "listings").
    """

    error_code: str = "DEPENDENCY_STEP_FAILED"

    def __init__(self, step: str, cause: BaseException) -> None:
        """Initialize dependency step error.

        Args:
            step: Cascade step key.
            cause: The exception raised by the step.
        """
        self.step = step
        self.cause = cause
        message = f"Cascade step '{step}' failed: {cause}"
        super().__init__(message, {"step": step, "cause_type": type(cause).__name__})


class IdentityDeletionExhaustedError(DomainError):
    """Every identity deletion layer was attempted without success.

    Recorded in the deletion result; the run finishes as partial or failed.

    Attributes:
        error_code: "IDENTITY_DELETION_EXHAUSTED" (class constant).
        identity_id: Identity that could not be removed.
        layers: Layers attempted, in order.
    """

    error_code: str = "IDENTITY_DELETION_EXHAUSTED"

    def __init__(self, identity_id: str, layers: list[str]) -> None:
        """Initialize identity deletion exhausted error.

        Args:
            identity_id: Identity that could not be removed.
            layers: Names of the layers attempted, in order.
        """
        self.identity_id = identity_id
        self.layers = layers
        message = f"Identity deletion exhausted all layers for {identity_id}"
        super().__init__(message, {"identity_id": identity_id, "layers": list(layers)})

"""
Structured error types for resource-spine reconcilers.

Provides the local half of the fault taxonomy: typed errors raised by steps
and by non-boto API clients, plus the helper that extracts an external
service error code from any fault so rule tables can match on it.

Faults raised by the remote control plane arrive either as botocore
``ClientError`` instances (boto3 clients) or as ``ServiceError`` (any other
client honouring the ``invoke(operation, request)`` contract). Both expose an
error code through ``error_code_of()``; the rule tables in
``resource_spine.rules`` match on that code or on the exception kind.

Manifesto:
    - **Typed Error Hierarchy:** Local faults have their own classes so rule
      tables can match them by kind
    - **No silent swallowing:** Every fault is classified; unknown ones map
      to ``InternalError``
    - **Rich Context:** Errors carry handler, step and resource metadata
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                   ResourceSpineError                             │
        │           (category, context, cause)                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ServiceError        AccessDeniedError    InvalidRequestError    │
        │  (SERVICE, code)     (AUTH)               (VALIDATION)           │
        │                                                                  │
        │  NotFoundError       NotUpdatableError    RuleSetConfigError     │
        │  (SERVICE)           (VALIDATION)         (CONFIG)               │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    Raising a client fault with an external error code:

    >>> error = ServiceError("Rate exceeded", error_code="Throttling")
    >>> error_code_of(error)
    'Throttling'

    Adding context to an error:

    >>> error = InvalidRequestError("bad parameter").with_context(step="validate")
    >>> error.context.step
    'validate'

Guardrails:
    ❌ DON'T: Let a raw exception escape a step that calls the external API
    ✅ DO: Classify it through an ``ErrorRuleSet``

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, resource-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from botocore.exceptions import ClientError


class ErrorCategory(str, Enum):
    """
    Error categories used for logging and routing of local faults.

    Categories describe *where* a fault came from; the outcome reported to the
    scheduler is decided separately by the rule tables.
    """

    SERVICE = "SERVICE"           # Remote control plane rejected a call
    NETWORK = "NETWORK"           # Connection, timeout, DNS
    VALIDATION = "VALIDATION"     # Local validation of the desired state
    AUTH = "AUTH"                 # Authentication, authorization
    CONFIG = "CONFIG"             # Invalid rule tables or settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        handler: Name of the handler that was running
        step: Name of the pipeline step
        operation: Remote operation name (e.g. ``ModifyDBInstance``)
        resource: Identifier of the managed resource
        metadata: Additional key-value pairs
    """

    handler: str | None = None
    step: str | None = None
    operation: str | None = None
    resource: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["handler", "step", "operation", "resource"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ResourceSpineError(Exception):
    """
    Base exception for all resource-spine errors.

    All instances carry:
    - **category:** ErrorCategory for logging and routing
    - **context:** ErrorContext with structured metadata
    - **cause:** Optional underlying exception for chaining

    Subclasses set ``default_category`` to provide a sensible default for
    their domain.

    Guardrails:
        ❌ DON'T: Catch ResourceSpineError and drop it
        ✅ DO: Hand it to ``handle_exception`` with the step's rule set
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ResourceSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("gone").with_context(resource="db-1")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SERVICE ERRORS
# =============================================================================


class ServiceError(ResourceSpineError):
    """
    Fault raised by an external API client that is not a botocore client.

    ``error_code`` is the service's own error code string, matched by
    ``ByCode`` rules exactly like a botocore ``ClientError`` code.
    """

    default_category = ErrorCategory.SERVICE

    def __init__(
        self,
        message: str,
        *,
        error_code: str,
        operation: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.error_code = error_code
        if operation is not None:
            self.context.operation = operation

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["error_code"] = self.error_code
        return result


class NotFoundError(ResourceSpineError):
    """Resource looked up by a step does not exist."""

    default_category = ErrorCategory.SERVICE


# =============================================================================
# LOCAL FAULTS
# =============================================================================


class AccessDeniedError(ResourceSpineError):
    """Caller is not permitted to perform a (usually auxiliary) operation."""

    default_category = ErrorCategory.AUTH


class InvalidRequestError(ResourceSpineError):
    """Desired state failed local validation."""

    default_category = ErrorCategory.VALIDATION


class NotUpdatableError(ResourceSpineError):
    """Attempt to change a property that cannot be changed in place."""

    default_category = ErrorCategory.VALIDATION


class RuleSetConfigError(ResourceSpineError):
    """Rule table could not be parsed or resolved."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def error_code_of(fault: BaseException) -> str | None:
    """
    Extract the normalized external error code from a fault.

    Returns ``None`` when the fault carries no service error code.
    """
    code: Any = None
    if isinstance(fault, ClientError):
        code = fault.response.get("Error", {}).get("Code")
    elif isinstance(fault, ServiceError):
        code = fault.error_code
    if code is None:
        return None
    code = str(code).strip()
    return code or None


def error_message_of(fault: BaseException) -> str:
    """Human-readable description of a fault for failure records."""
    if isinstance(fault, ClientError):
        message = fault.response.get("Error", {}).get("Message")
        if message:
            return str(message)
    if isinstance(fault, ResourceSpineError):
        return fault.message
    return str(fault) or fault.__class__.__name__


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ResourceSpineError",
    "ServiceError",
    "NotFoundError",
    "AccessDeniedError",
    "InvalidRequestError",
    "NotUpdatableError",
    "RuleSetConfigError",
    "error_code_of",
    "error_message_of",
]

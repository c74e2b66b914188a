"""
Shared enums for the resource-spine reconcilers.

Enums in this module are used by the rule tables, the orchestration layer and
every concrete reconciler. Import from here to avoid coupling the resource
packages to each other.

STDLIB ONLY - NO PYDANTIC.
"""

from enum import Enum


class OperationStatus(str, Enum):
    """
    Status of one logical operation as reported to the scheduler.

    ``SUCCESS`` and ``FAILED`` are terminal: the scheduler stops invoking and
    the pipeline never runs another step once a record carries either.
    ``IN_PROGRESS`` means "resume me later", optionally after a delay.
    """

    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not OperationStatus.IN_PROGRESS


class HandlerErrorCode(str, Enum):
    """
    Closed enumeration of outcome codes reported on terminal failure.

    The scheduler consumes these for user-facing reporting and its own retry
    policy, so values are stable CamelCase strings.
    """

    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    RESOURCE_CONFLICT = "ResourceConflict"
    SERVICE_LIMIT_EXCEEDED = "ServiceLimitExceeded"
    INVALID_REQUEST = "InvalidRequest"
    ACCESS_DENIED = "AccessDenied"
    INVALID_CREDENTIALS = "InvalidCredentials"
    THROTTLING = "Throttling"
    SERVICE_INTERNAL_ERROR = "ServiceInternalError"
    NETWORK_FAILURE = "NetworkFailure"
    NOT_STABILIZED = "NotStabilized"
    NOT_UPDATABLE = "NotUpdatable"
    INTERNAL_ERROR = "InternalError"  # Unclassified faults


__all__ = [
    "OperationStatus",
    "HandlerErrorCode",
]

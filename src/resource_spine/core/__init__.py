"""Resource Spine Core -- enums, errors, logging and settings.

Architecture::

    enums.py      OperationStatus + HandlerErrorCode (closed outcome codes)
    errors.py     Local fault hierarchy + error_code_of() extraction
    logging.py    structlog configuration + EventSink protocol
    settings.py   ReconcilerSettings (pydantic-settings, RESOURCE_SPINE_*)

``settings`` is not re-exported here so importing the core never requires
reading the environment.
"""

from resource_spine.core.enums import HandlerErrorCode, OperationStatus
from resource_spine.core.errors import (
    AccessDeniedError,
    ErrorCategory,
    ErrorContext,
    InvalidRequestError,
    NotFoundError,
    NotUpdatableError,
    ResourceSpineError,
    RuleSetConfigError,
    ServiceError,
    error_code_of,
    error_message_of,
)
from resource_spine.core.logging import EventSink, LogContext, configure_logging, get_logger

__all__ = [
    "HandlerErrorCode",
    "OperationStatus",
    "AccessDeniedError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidRequestError",
    "NotFoundError",
    "NotUpdatableError",
    "ResourceSpineError",
    "RuleSetConfigError",
    "ServiceError",
    "error_code_of",
    "error_message_of",
    "EventSink",
    "LogContext",
    "configure_logging",
    "get_logger",
]

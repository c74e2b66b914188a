"""Well-known external error codes returned by AWS control-plane APIs.

Resource-specific codes (``DBInstanceNotFound`` and friends) live in the
rule tables of the resource packages; these are the ones every service can
return and the default table classifies.
"""

from enum import Enum


class ServiceErrorCode(str, Enum):
    """Error codes shared by every AWS query-protocol service."""

    CLIENT_UNAVAILABLE = "ClientUnavailable"
    ACCESS_DENIED_EXCEPTION = "AccessDeniedException"
    ACCESS_DENIED = "AccessDenied"
    NOT_AUTHORIZED = "NotAuthorized"
    THROTTLING_EXCEPTION = "ThrottlingException"
    THROTTLING = "Throttling"
    REQUEST_LIMIT_EXCEEDED = "RequestLimitExceeded"
    INVALID_PARAMETER_COMBINATION = "InvalidParameterCombination"
    INVALID_PARAMETER_VALUE = "InvalidParameterValue"
    MISSING_PARAMETER = "MissingParameter"
    INVALID_CLIENT_TOKEN_ID = "InvalidClientTokenId"
    EXPIRED_TOKEN = "ExpiredToken"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    INTERNAL_FAILURE = "InternalFailure"


__all__ = ["ServiceErrorCode"]

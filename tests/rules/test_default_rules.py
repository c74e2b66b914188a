"""Tests for the packaged default classification table."""

import pytest
from botocore.exceptions import EndpointConnectionError, NoCredentialsError, ParamValidationError

from resource_spine.core.enums import HandlerErrorCode
from resource_spine.core.errors import AccessDeniedError, InvalidRequestError, NotFoundError
from resource_spine.orchestration.progress import CallbackContext, ProgressEvent
from resource_spine.orchestration.translate import handle_exception
from resource_spine.rules.defaults import DEFAULT_ERROR_RULE_SET
from resource_spine.rules.rule_set import ErrorRuleSet
from resource_spine.rules.status import fail_with
from resource_spine.testing import client_error


class TestDefaultCodes:
    """Service error codes every API can return."""

    @pytest.mark.parametrize(
        "code, expected",
        [
            ("ClientUnavailable", HandlerErrorCode.SERVICE_INTERNAL_ERROR),
            ("AccessDeniedException", HandlerErrorCode.ACCESS_DENIED),
            ("NotAuthorized", HandlerErrorCode.ACCESS_DENIED),
            ("ThrottlingException", HandlerErrorCode.THROTTLING),
            ("Throttling", HandlerErrorCode.THROTTLING),
            ("RequestLimitExceeded", HandlerErrorCode.THROTTLING),
            ("InvalidParameterCombination", HandlerErrorCode.INVALID_REQUEST),
            ("InvalidParameterValue", HandlerErrorCode.INVALID_REQUEST),
            ("MissingParameter", HandlerErrorCode.INVALID_REQUEST),
        ],
    )
    def test_code_classification(self, code, expected):
        assert DEFAULT_ERROR_RULE_SET.handle(client_error(code)) == fail_with(expected)

    def test_unknown_code_is_internal_error(self):
        status = DEFAULT_ERROR_RULE_SET.handle(client_error("NoSuchThing"))
        assert status == fail_with(HandlerErrorCode.INTERNAL_ERROR)


class TestDefaultKinds:
    """Client-side and local faults."""

    def test_client_side_sdk_error_is_service_internal_error(self):
        fault = ParamValidationError(report="missing DBInstanceIdentifier")
        assert DEFAULT_ERROR_RULE_SET.handle(fault) == fail_with(HandlerErrorCode.SERVICE_INTERNAL_ERROR)

    def test_endpoint_connection_is_network_failure(self):
        fault = EndpointConnectionError(endpoint_url="https://rds.example")
        assert DEFAULT_ERROR_RULE_SET.handle(fault) == fail_with(HandlerErrorCode.NETWORK_FAILURE)

    def test_missing_credentials(self):
        assert DEFAULT_ERROR_RULE_SET.handle(NoCredentialsError()) == fail_with(
            HandlerErrorCode.INVALID_CREDENTIALS
        )

    @pytest.mark.parametrize(
        "fault, expected",
        [
            (AccessDeniedError("no"), HandlerErrorCode.ACCESS_DENIED),
            (InvalidRequestError("bad"), HandlerErrorCode.INVALID_REQUEST),
            (NotFoundError("gone"), HandlerErrorCode.NOT_FOUND),
        ],
    )
    def test_local_faults(self, fault, expected):
        assert DEFAULT_ERROR_RULE_SET.handle(fault) == fail_with(expected)

    def test_plain_exception_is_internal_error(self):
        assert DEFAULT_ERROR_RULE_SET.handle(ValueError("x")) == fail_with(HandlerErrorCode.INTERNAL_ERROR)


class TestHandleExceptionWithDefaults:
    """Classification plus translation into a progress record."""

    def test_throttling_fails_the_record(self):
        progress = ProgressEvent.progress({"id": "db-1"}, CallbackContext())
        result = handle_exception(progress, client_error("Throttling", "Rate exceeded"), DEFAULT_ERROR_RULE_SET)
        assert result.is_failed()
        assert result.error_code is HandlerErrorCode.THROTTLING
        assert result.message == "Rate exceeded"

    def test_empty_rule_set_is_internal_failure(self):
        progress = ProgressEvent.progress({"id": "db-1"}, CallbackContext())
        result = handle_exception(progress, client_error("Throttling"), ErrorRuleSet())
        assert result.error_code is HandlerErrorCode.INTERNAL_ERROR

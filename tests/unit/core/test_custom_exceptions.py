import pytest
from fastapi import status

from verdict_proxy.core.exceptions import (
    BackendConnectionError,
    BackendError,
    BackendHTTPError,
    BackendTimeoutError,
    MalformedJSONError,
    PayloadTooLargeError,
    QueueClosedError,
    ServiceError,
    ValidationError,
)


class TestServiceExceptionHierarchy:
    """Test service exception hierarchy and inheritance"""

    def test_service_error_defaults(self):
        error = ServiceError("Default status error")
        assert error.http_status == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert error.error_type == "service_error"
        assert error.details is None

    def test_service_error_status_override(self):
        error = ServiceError("Test service error", http_status=503)
        assert error.http_status == 503
        assert ServiceError("other").http_status == 500

    def test_backend_http_error_carries_status_and_body(self):
        error = BackendHTTPError(502, {"error": "upstream"})
        assert error.status_code == 502
        assert error.body == {"error": "upstream"}
        assert error.details == {"error": "upstream"}
        assert "502" in str(error)
        assert error.http_status == status.HTTP_500_INTERNAL_SERVER_ERROR

    @pytest.mark.parametrize("exception_class,expected_type", [
        (ValidationError, "validation_error"),
        (PayloadTooLargeError, "payload_too_large"),
        (BackendError, "backend_error"),
        (BackendConnectionError, "connection_error"),
        (BackendTimeoutError, "timeout"),
        (MalformedJSONError, "malformed_json"),
        (QueueClosedError, "queue_closed"),
    ])
    def test_exception_error_types(self, exception_class, expected_type):
        error = exception_class("Test error")
        assert error.error_type == expected_type
        assert isinstance(error, ServiceError)

    @pytest.mark.parametrize("exception_class,expected_status", [
        (ValidationError, status.HTTP_400_BAD_REQUEST),
        (PayloadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
        (BackendConnectionError, status.HTTP_500_INTERNAL_SERVER_ERROR),
        (BackendTimeoutError, status.HTTP_500_INTERNAL_SERVER_ERROR),
        (MalformedJSONError, status.HTTP_500_INTERNAL_SERVER_ERROR),
        (QueueClosedError, status.HTTP_503_SERVICE_UNAVAILABLE),
    ])
    def test_exception_http_statuses(self, exception_class, expected_status):
        assert exception_class("Test error").http_status == expected_status

    @pytest.mark.parametrize("exception_class", [
        BackendConnectionError, BackendTimeoutError, BackendHTTPError, MalformedJSONError,
    ])
    def test_backend_errors_share_base(self, exception_class):
        assert issubclass(exception_class, BackendError)

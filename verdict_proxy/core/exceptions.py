from typing import Any

from fastapi import status


class ServiceError(Exception):
    """Base exception for service errors with built-in HTTP status mapping"""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "service_error"

    def __init__(self, message: str, details: Any = None, http_status: int | None = None):
        super().__init__(message)
        self.details = details
        if http_status is not None:
            self.http_status = http_status


class ValidationError(ServiceError):
    """Input validation errors: unknown model or category"""

    http_status: int = status.HTTP_400_BAD_REQUEST
    error_type: str = "validation_error"


class PayloadTooLargeError(ValidationError):
    """Request body exceeds the configured limit"""

    http_status: int = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error_type: str = "payload_too_large"


class BackendError(ServiceError):
    """Failure talking to the inference backend"""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "backend_error"


class BackendConnectionError(BackendError):
    """Transport-level failure: refused, reset, DNS"""

    error_type: str = "connection_error"


class BackendTimeoutError(BackendError):
    """Backend call did not settle within its budget"""

    error_type: str = "timeout"


class BackendHTTPError(BackendError):
    """Backend answered with a non-2xx status"""

    error_type: str = "backend_http_error"

    def __init__(self, status_code: int, body: Any):
        super().__init__(f"Backend returned HTTP {status_code}", details=body)
        self.status_code = status_code
        self.body = body


class MalformedJSONError(BackendError):
    """Backend answered 2xx with a body that is not JSON"""

    error_type: str = "malformed_json"


class QueueClosedError(ServiceError):
    """Request submitted to, or still pending in, a stopped queue"""

    http_status: int = status.HTTP_503_SERVICE_UNAVAILABLE
    error_type: str = "queue_closed"

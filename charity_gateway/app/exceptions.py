"""Custom exceptions for the charity gateway."""

from typing import Optional


class CharityGatewayError(Exception):
    """Base class for gateway exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code for consistent HTTP response handling.
    """
    status_code: Optional[int] = 500
    error_code: str = "gateway_error"

    def __init__(self, message: str = "Gateway error"):
        self.message = message
        super().__init__(message)


class UpstreamError(CharityGatewayError):
    """Raised when a CharityAPI call fails for good.

    Covers non-2xx responses and network failures once retries are
    exhausted. ``status_code`` is the upstream HTTP status, or None when
    no response was received.
    """
    error_code = "upstream_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause


class ValidationError(CharityGatewayError):
    """Raised when caller input fails validation.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class RequestCancelledError(CharityGatewayError):
    """Raised when the caller aborts an upstream call before it finishes."""
    status_code = 499
    error_code = "request_cancelled"

    def __init__(self, message: str = "Request cancelled by caller"):
        super().__init__(message)

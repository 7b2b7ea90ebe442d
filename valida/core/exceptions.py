"""App-wide exception hierarchy.

This module provides a unified exception system with automatic HTTP status code
mapping and consistent error response formatting. Domain packages subclass
these in their own ``exceptions`` modules.
"""


class AppException(Exception):
    """Base exception for all application errors.

    All custom exceptions inherit from this class and define their own
    status_code and error_type for consistent API responses.
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)


# Validation errors (400)
class ValidationError(AppException):
    """Raised when required input is missing or malformed."""

    status_code = 400
    error_type = "validation_error"

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message)


# Authentication errors (401)
class AuthenticationError(AppException):
    """Base class for authentication failures."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


# Authorization errors (403)
class AuthorizationError(AppException):
    """Base class for authorization failures."""

    status_code = 403
    error_type = "authorization_error"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


# Not found errors (404)
class NotFoundError(AppException):
    """Base class for resource not found errors."""

    status_code = 404
    error_type = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


# Conflict errors (409)
class ConflictError(AppException):
    """Base class for resource conflict errors."""

    status_code = 409
    error_type = "conflict"

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message)


# Deployment errors (500)
class ConfigurationError(AppException):
    """Raised when a required deployment secret is absent.

    Indicates a broken deployment rather than a user mistake, so the
    exception handler logs it at CRITICAL level.
    """

    status_code = 500
    error_type = "configuration_error"

    def __init__(self, message: str = "Service is not configured"):
        super().__init__(message)


class PersistenceError(AppException):
    """Raised when storing a result failed after the upstream call succeeded.

    The external side effect already happened and cannot be rolled back,
    so this is reported separately from upstream failures.
    """

    status_code = 500
    error_type = "persistence_error"

    def __init__(self, message: str = "Failed to save the processed result"):
        super().__init__(message)


# External service errors (502)
class UpstreamError(AppException):
    """Raised when a third-party API returns a non-success response."""

    status_code = 502
    error_type = "upstream_error"

    def __init__(
        self,
        message: str = "External service error",
        upstream_status: int | None = None,
    ):
        self.upstream_status = upstream_status
        super().__init__(message)


# Gateway timeout (504)
class UpstreamTimeoutError(AppException):
    """Raised when a long-running external call exceeded its time bound."""

    status_code = 504
    error_type = "upstream_timeout"

    def __init__(self, message: str = "External service timed out"):
        super().__init__(message)


# Internal errors (500)
class InternalError(AppException):
    """Raised for internal server errors."""

    status_code = 500
    error_type = "internal_error"

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message)

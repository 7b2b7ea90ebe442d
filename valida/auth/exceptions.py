"""Auth domain exceptions.

Authentication and authorization related exceptions.
"""

from valida.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    UpstreamError,
)


# Authentication errors (401)
class InvalidCredentialsError(AuthenticationError):
    """Raised when no credential was presented."""

    error_type = "invalid_credentials"

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Raised when the access token is invalid or expired."""

    error_type = "invalid_token"

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message)


# Authorization errors (403)
class AdminRequiredError(AuthorizationError):
    """Raised when admin privileges are required."""

    error_type = "admin_required"

    def __init__(self, message: str = "Admin privileges required"):
        super().__init__(message)


# Not found errors (404)
class AccountNotFoundError(NotFoundError):
    """Raised when no auth account exists for an id or email."""

    error_type = "account_not_found"

    def __init__(self, message: str = "Account not found"):
        super().__init__(message)


# Provider errors (502)
class AuthProviderError(UpstreamError):
    """Raised when the Supabase auth admin API rejects a request."""

    error_type = "auth_provider_error"

    def __init__(
        self,
        message: str = "Authentication provider error",
        upstream_status: int | None = None,
    ):
        super().__init__(message, upstream_status=upstream_status)

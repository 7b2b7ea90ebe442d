"""Profile domain exceptions."""

from valida.core.exceptions import AuthorizationError, NotFoundError


class ProfileNotFoundError(NotFoundError):
    """Raised when a profile cannot be found."""

    error_type = "profile_not_found"

    def __init__(self, message: str = "Profile not found"):
        super().__init__(message)


class UserBannedError(AuthorizationError):
    """Raised when a banned account calls any gateway.

    The identity token itself is still valid; only the profile flag refuses it.
    """

    error_type = "user_banned"

    def __init__(self, message: str = "This account has been banned"):
        super().__init__(message)

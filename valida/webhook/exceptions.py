"""Webhook domain exceptions."""

from valida.core.exceptions import AuthenticationError


class InvalidWebhookTokenError(AuthenticationError):
    """Raised when a webhook token is missing or differs from the secret.

    Missing, wrong-length and wrong-byte tokens all produce this same error.
    """

    error_type = "invalid_webhook_token"

    def __init__(self, message: str = "Invalid webhook token"):
        super().__init__(message)

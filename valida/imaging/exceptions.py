"""Imaging domain exceptions."""

from valida.core.exceptions import AuthenticationError, NotFoundError, UpstreamError


class ImageDownloadError(UpstreamError):
    """Raised when a source or generated image cannot be downloaded."""

    error_type = "image_download_error"

    def __init__(
        self,
        message: str = "Failed to download image",
        upstream_status: int | None = None,
    ):
        super().__init__(message, upstream_status=upstream_status)


class ProductNotFoundError(NotFoundError):
    """Raised when a legacy product does not exist or belongs to someone else."""

    error_type = "product_not_found"

    def __init__(self, message: str = "Product not found"):
        super().__init__(message)


class InvalidWorkflowTokenError(AuthenticationError):
    """Raised when a workflow callback carries a wrong shared secret."""

    error_type = "invalid_workflow_token"

    def __init__(self, message: str = "Invalid workflow token"):
        super().__init__(message)

"""Copywriting domain exceptions."""

from valida.core.exceptions import UpstreamError


class GenerationUnavailableError(UpstreamError):
    """Raised when no candidate model produced an answer.

    ``attempts`` keeps the failure of every model tried, in order.
    """

    error_type = "generation_unavailable"

    def __init__(
        self,
        message: str = "No text-generation model is available",
        attempts: list | None = None,
        upstream_status: int | None = None,
    ):
        self.attempts = attempts or []
        super().__init__(message, upstream_status=upstream_status)

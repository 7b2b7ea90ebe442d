"""Generation domain exceptions."""

from valida.core.exceptions import ConflictError, NotFoundError


class GenerationNotFoundError(NotFoundError):
    """Raised when a generation does not exist or belongs to someone else."""

    error_type = "generation_not_found"

    def __init__(self, message: str = "Generation not found"):
        super().__init__(message)


class InvalidStatusTransitionError(ConflictError):
    """Raised when a status change is not allowed by the life-cycle."""

    error_type = "invalid_status_transition"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change status from '{current}' to '{requested}'")

"""Fallback utilities for async operations.

Provides "try each equivalent backend once, first success wins" execution
over an explicit, ordered list of candidates. Candidates are tried strictly
one after another with no delay, no backoff and no memory of which
candidate worked for a previous call.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class FailedAttempt[C]:
    """One candidate that was tried and failed."""

    candidate: C
    error: Exception


class FallbackExhaustedError(Exception):
    """Raised when every candidate failed (or there were none to try)."""

    def __init__(self, attempts: list[FailedAttempt]):
        self.attempts = attempts
        if attempts:
            message = (
                f"All {len(attempts)} candidates failed; "
                f"last error: {attempts[-1].error}"
            )
        else:
            message = "No candidates to try"
        super().__init__(message)

    @property
    def last_error(self) -> Exception | None:
        """Error raised by the last candidate tried, if any."""
        return self.attempts[-1].error if self.attempts else None


async def first_success[C, T](
    candidates: Sequence[C],
    attempt: Callable[[C], Awaitable[T]],
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> T:
    """Run ``attempt`` against each candidate in order until one succeeds.

    Args:
        candidates: Ordered candidates (highest priority first)
        attempt: Async function called with one candidate
        exceptions: Exception types that move on to the next candidate;
            anything else propagates immediately

    Returns:
        Result of the first successful attempt

    Raises:
        FallbackExhaustedError: If no candidate succeeded

    Example:
        data = await first_success(
            ["models/a", "models/b"],
            lambda model: call_model(model, prompt),
            exceptions=(UpstreamError,),
        )
    """
    failures: list[FailedAttempt[C]] = []

    for candidate in candidates:
        try:
            return await attempt(candidate)
        except exceptions as e:
            failures.append(FailedAttempt(candidate=candidate, error=e))

    raise FallbackExhaustedError(failures)

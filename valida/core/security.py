"""Shared-secret helpers for machine-to-machine endpoints."""

import hmac


def secrets_match(received: str | None, expected: str) -> bool:
    """Compare a received token against the configured secret in constant time.

    Both a length mismatch and a byte mismatch return False, and the
    comparison never stops early at the first differing byte.

    Args:
        received: Token presented by the caller (None when absent)
        expected: Configured shared secret

    Returns:
        True only when both tokens are identical
    """
    if not received or not expected:
        return False
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))

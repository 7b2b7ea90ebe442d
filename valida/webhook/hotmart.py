"""Field extraction from Hotmart purchase notifications.

Hotmart has shipped several payload shapes over time (flat, nested under
``data``, nested under ``purchase``), so every field is looked up in a fixed
priority order.
"""

import secrets
import string
import time
from dataclasses import dataclass
from typing import Any

from valida.core.exceptions import ValidationError

APPROVED_STATUS = "APPROVED"
DEFAULT_BUYER_NAME = "Usuário"
BODY_TOKEN_FIELDS = ("hottok", "token", "secret")
FALLBACK_PASSWORD_PREFIX = "HP"
FALLBACK_SUFFIX_LENGTH = 6
_FALLBACK_ALPHABET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class ReceivedToken:
    value: str | None
    from_body: bool = False


@dataclass(frozen=True)
class Buyer:
    email: str
    name: str


def dig(payload: Any, *path: str) -> Any:
    """Follow nested keys, returning None as soon as one is missing."""
    current = payload
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, dict | list | bool):
        return None
    text = str(value).strip()
    return text or None


def extract_token(header_token: str | None, payload: dict[str, Any]) -> ReceivedToken:
    """Token from ``X-Hotmart-Hottok``, else from the first body token field."""
    if header_token:
        return ReceivedToken(value=header_token, from_body=False)
    for field in BODY_TOKEN_FIELDS:
        value = _text(payload.get(field))
        if value:
            return ReceivedToken(value=value, from_body=True)
    return ReceivedToken(value=None)


def extract_status(payload: dict[str, Any]) -> str | None:
    return _text(payload.get("status")) or _text(
        dig(payload, "data", "purchase", "status")
    )


def extract_buyer(payload: dict[str, Any]) -> Buyer:
    """Buyer email (required) and display name.

    Raises:
        ValidationError: If no buyer email is present
    """
    email = _text(dig(payload, "buyer", "email")) or _text(
        dig(payload, "data", "buyer", "email")
    )
    if not email:
        raise ValidationError("Buyer email not found in payload")
    name = (
        _text(dig(payload, "buyer", "name"))
        or _text(dig(payload, "data", "buyer", "name"))
        or DEFAULT_BUYER_NAME
    )
    return Buyer(email=email, name=name)


def extract_transaction_code(
    payload: dict[str, Any], token_from_body: bool
) -> str | None:
    """First transaction reference found in the payload.

    ``hottok`` only counts as a transaction code when it was not the token
    used to authenticate the request.
    """
    candidates = [
        ("transaction",),
        ("purchase_code",),
        ("hottok",),
        ("transaction_code",),
        ("data", "transaction"),
        ("data", "purchase_code"),
        ("data", "hottok"),
        ("purchase", "transaction"),
        ("purchase", "code"),
        ("data", "purchase", "transaction"),
    ]
    for path in candidates:
        if path == ("hottok",) and token_from_body:
            continue
        code = _text(dig(payload, *path))
        if code:
            return code
    return None


def generate_fallback_password() -> str:
    """``HP`` + epoch milliseconds + a random uppercase suffix."""
    epoch_ms = time.time_ns() // 1_000_000
    suffix = "".join(
        secrets.choice(_FALLBACK_ALPHABET) for _ in range(FALLBACK_SUFFIX_LENGTH)
    )
    return f"{FALLBACK_PASSWORD_PREFIX}{epoch_ms}{suffix}"

"""Webhook domain router.

Machine-to-machine notifications. These routes are not called with a user
session; each one authenticates with its own shared secret.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Header, Request

from valida.auth.dependencies import SupabaseAuthDep
from valida.core.constants import CommonResponses, Routes
from valida.core.deps import SessionDep, SettingsDep
from valida.core.exceptions import ConfigurationError, ValidationError
from valida.core.security import secrets_match
from valida.webhook.exceptions import InvalidWebhookTokenError
from valida.webhook.hotmart import (
    APPROVED_STATUS,
    extract_buyer,
    extract_status,
    extract_token,
    extract_transaction_code,
)
from valida.webhook.schemas import WebhookResponse
from valida.webhook.service import provision_account

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.WEBHOOKS.prefix,
    tags=[Routes.WEBHOOKS.tag],
    responses={**CommonResponses.BAD_REQUEST, **CommonResponses.UNAUTHORIZED},
)


@router.post(
    "/hotmart",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
)
async def hotmart_webhook(
    request: Request,
    session: SessionDep,
    settings: SettingsDep,
    auth_service: SupabaseAuthDep,
    x_hotmart_hottok: Annotated[str | None, Header()] = None,
):
    """Provision an account for an approved Hotmart purchase.

    Non-approved statuses are acknowledged with 200 so Hotmart does not
    retry them.
    """
    if not settings.hotmart_secret:
        raise ConfigurationError("HOTMART_SECRET is not configured")

    try:
        payload = await request.json()
    except ValueError as e:
        raise ValidationError("Malformed JSON body") from e
    if not isinstance(payload, dict):
        raise ValidationError("Webhook body must be a JSON object")

    token = extract_token(x_hotmart_hottok, payload)
    if not secrets_match(token.value, settings.hotmart_secret):
        logger.warning(
            "Rejected webhook with invalid token",
            extra={"client_ip": request.client.host if request.client else None},
        )
        raise InvalidWebhookTokenError()

    purchase_status = extract_status(payload)
    if purchase_status != APPROVED_STATUS:
        return WebhookResponse(message="Status not approved", status=purchase_status)

    buyer = extract_buyer(payload)
    result = provision_account(
        session,
        auth_service,
        buyer,
        extract_transaction_code(payload, token_from_body=token.from_body),
        login_url=settings.login_url,
    )
    if result.created:
        message = "User created successfully"
    else:
        message = "User updated successfully"
    return WebhookResponse(message=message, user_id=result.user_id)

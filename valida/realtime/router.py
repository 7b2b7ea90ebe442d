"""Realtime router.

WebSocket through which a viewer of one generation learns that its image
changed out of band (e.g. the workflow engine finished after the original
request returned).
"""

import asyncio
import contextlib
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, WebSocket, status

from valida.auth.dependencies import SupabaseAuthDep, authenticate_access_token
from valida.core.constants import Routes
from valida.core.deps import SessionDep
from valida.core.exceptions import AppException
from valida.generation.service import get_owned_generation
from valida.realtime.broker import (
    GenerationEventBroker,
    Subscription,
    get_event_broker,
)
from valida.realtime.feed import GenerationChangeFeed, get_change_feed
from valida.realtime.tracker import ImageUrlTracker

logger = logging.getLogger(__name__)

IMAGE_UPDATED_MESSAGE = "Image updated successfully"

router = APIRouter(prefix=Routes.GENERATION.prefix, tags=["realtime"])

EventBrokerDep = Annotated[GenerationEventBroker, Depends(get_event_broker)]
ChangeFeedDep = Annotated[GenerationChangeFeed, Depends(get_change_feed)]


async def _forward_updates(
    websocket: WebSocket, subscription: Subscription, tracker: ImageUrlTracker
) -> None:
    async for event in subscription:
        if tracker.apply(event.image_url):
            await websocket.send_json(
                {
                    "type": "image_updated",
                    "image_url": tracker.current,
                    "message": IMAGE_UPDATED_MESSAGE,
                }
            )


@router.websocket("/{generation_id}/events")
async def generation_events(
    websocket: WebSocket,
    generation_id: str,
    session: SessionDep,
    auth_service: SupabaseAuthDep,
    broker: EventBrokerDep,
    feed: ChangeFeedDep,
    access_token: str | None = None,
):
    """Push image updates of one generation to its owner.

    Browsers cannot set headers on a WebSocket handshake, so the access token
    travels in the ``access_token`` query parameter. Messages:

    - ``{"type": "subscribed", "image_url": <current>}`` once, on connect
    - ``{"type": "image_updated", "image_url": ..., "message": ...}`` for
      every new URL (repeated URLs are not re-sent)
    """
    try:
        profile = authenticate_access_token(access_token, session, auth_service)
        generation = get_owned_generation(session, generation_id, profile.id)
    except AppException as e:
        logger.info(
            "Realtime subscription refused: %s",
            e.error_type,
            extra={"generation_id": generation_id, "error_type": e.error_type},
        )
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    await websocket.accept()

    async with (
        broker.subscribe(generation_id) as subscription,
        feed.watch(generation_id),
    ):
        # Read the row only once subscribed, so no update falls in between
        session.refresh(generation)
        tracker = ImageUrlTracker(generation.image_url)
        await websocket.send_json({"type": "subscribed", "image_url": tracker.current})
        forwarder = asyncio.create_task(
            _forward_updates(websocket, subscription, tracker)
        )
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await forwarder

    logger.debug("Realtime subscription closed", extra={"generation_id": generation_id})

"""Imaging domain router.

Three interchangeable image gateways plus the callback through which the
workflow engine reports results it finishes out of band.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header

from valida.auth.dependencies import ActiveProfileDep
from valida.core.constants import CommonResponses, Routes
from valida.core.deps import SessionDep, SettingsDep, UpstreamClientDep
from valida.core.exceptions import ConfigurationError
from valida.core.security import secrets_match
from valida.generation.lifecycle import set_generation_image
from valida.imaging.exceptions import InvalidWorkflowTokenError
from valida.imaging.remove_bg import RemoveBgClient, get_remove_bg_client
from valida.imaging.schemas import (
    RemoveBackgroundRequest,
    RemoveBackgroundResponse,
    StudioRequest,
    StudioResponse,
    WorkflowCallback,
    WorkflowCallbackResponse,
    WorkflowRequest,
    WorkflowResponse,
)
from valida.imaging.service import (
    create_studio_photo,
    hand_off_to_workflow,
    remove_background,
)
from valida.imaging.storage import ImageStorage, get_image_storage
from valida.imaging.studio import StudioPhotographer, get_studio_photographer
from valida.imaging.workflow import WorkflowClient, get_workflow_gateway

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.IMAGES.prefix,
    tags=[Routes.IMAGES.tag],
    responses={**CommonResponses.BAD_REQUEST, **CommonResponses.UPSTREAM},
)

ImageStorageDep = Annotated[ImageStorage, Depends(get_image_storage)]
RemoveBgDep = Annotated[RemoveBgClient, Depends(get_remove_bg_client)]
StudioDep = Annotated[StudioPhotographer, Depends(get_studio_photographer)]
WorkflowDep = Annotated[WorkflowClient, Depends(get_workflow_gateway)]

_user_responses = {
    **CommonResponses.UNAUTHORIZED,
    **CommonResponses.FORBIDDEN,
    **CommonResponses.NOT_FOUND,
}


@router.post(
    "/remove-background",
    response_model=RemoveBackgroundResponse,
    responses=_user_responses,
)
async def remove_background_route(
    payload: RemoveBackgroundRequest,
    profile: ActiveProfileDep,
    session: SessionDep,
    remover: RemoveBgDep,
    storage: ImageStorageDep,
    http_client: UpstreamClientDep,
):
    """Remove the background of a generation's image (synchronous)."""
    url = await remove_background(
        session,
        profile.id,
        payload.image_url,
        payload.product_id,
        remover=remover,
        storage=storage,
        http_client=http_client,
    )
    return RemoveBackgroundResponse(processed_image_url=url)


@router.post(
    "/studio",
    response_model=StudioResponse,
    responses=_user_responses,
)
async def studio_route(
    payload: StudioRequest,
    profile: ActiveProfileDep,
    session: SessionDep,
    photographer: StudioDep,
    storage: ImageStorageDep,
):
    """Generate a studio product photo from the image (vision, then generation)."""
    url = await create_studio_photo(
        session,
        profile.id,
        payload.image_url,
        generation_id=payload.generation_id,
        product_id=payload.product_id,
        photographer=photographer,
        storage=storage,
    )
    return StudioResponse(processed_url=url)


@router.post(
    "/workflow",
    response_model=WorkflowResponse,
    responses={**_user_responses, **CommonResponses.TIMEOUT},
)
async def workflow_route(
    payload: WorkflowRequest,
    profile: ActiveProfileDep,
    session: SessionDep,
    workflow: WorkflowDep,
    storage: ImageStorageDep,
):
    """Hand the image to the workflow engine and wait for the result."""
    url = await hand_off_to_workflow(
        session,
        profile.id,
        payload.image_url,
        payload.product_id,
        workflow=workflow,
        storage=storage,
    )
    return WorkflowResponse(image_url=url)


@router.post(
    "/workflow/callback",
    response_model=WorkflowCallbackResponse,
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.NOT_FOUND},
)
async def workflow_callback_route(
    payload: WorkflowCallback,
    session: SessionDep,
    settings: SettingsDep,
    x_workflow_token: Annotated[str | None, Header()] = None,
):
    """Accept a result the workflow engine finished out of band.

    Authenticated by the shared secret in ``X-Workflow-Token``. Viewers
    subscribed to the generation are notified.
    """
    if not settings.n8n_callback_secret:
        raise ConfigurationError("N8N_CALLBACK_SECRET is not configured")
    if not secrets_match(x_workflow_token, settings.n8n_callback_secret):
        raise InvalidWorkflowTokenError()

    generation = set_generation_image(session, payload.generation_id, payload.image_url)
    logger.info(
        "Workflow callback applied", extra={"generation_id": payload.generation_id}
    )
    return WorkflowCallbackResponse(image_url=generation.image_url)

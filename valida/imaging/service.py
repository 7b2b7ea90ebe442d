"""Image gateway pipelines.

Shared contract of every pipeline: ownership is checked before any external
call, processed bytes are uploaded under a fresh name, and the row update is
the last step, so a failed upload leaves the row untouched.
"""

import logging

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from valida.core.exceptions import PersistenceError
from valida.generation.lifecycle import set_generation_image
from valida.generation.service import get_owned_generation
from valida.imaging.download import download_image
from valida.imaging.exceptions import ProductNotFoundError
from valida.imaging.models import LegacyProduct
from valida.imaging.remove_bg import RemoveBgClient
from valida.imaging.storage import ImageStorage
from valida.imaging.studio import StudioPhotographer
from valida.imaging.workflow import WorkflowClient

logger = logging.getLogger(__name__)

PROCESSED_PREFIX = "processed"
EDITED_PREFIX = "edited"


def get_owned_product(session: Session, product_id: str, user_id: str) -> LegacyProduct:
    product = session.get(LegacyProduct, product_id)
    if product is None or product.user_id != user_id:
        raise ProductNotFoundError()
    return product


def set_product_image(session: Session, product: LegacyProduct, image_url: str) -> None:
    product.processed_image_url = image_url
    try:
        session.add(product)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError("Failed to update the product image") from e


async def remove_background(
    session: Session,
    user_id: str,
    image_url: str,
    generation_id: str,
    *,
    remover: RemoveBgClient,
    storage: ImageStorage,
    http_client: httpx.AsyncClient,
) -> str:
    """Cut out the background of a generation's image.

    Returns:
        Public URL of the processed image, now the generation's image
    """
    remover.ensure_configured()
    generation = get_owned_generation(session, generation_id, user_id)

    source = await download_image(http_client, image_url)
    png = await remover.remove_background(source.content, source.content_type)
    public_url = await storage.upload_png(
        png, prefix=PROCESSED_PREFIX, record_id=generation.id
    )
    set_generation_image(session, generation.id, public_url)
    return public_url


async def create_studio_photo(
    session: Session,
    user_id: str,
    image_url: str,
    *,
    generation_id: str | None,
    product_id: str | None,
    photographer: StudioPhotographer,
    storage: ImageStorage,
) -> str:
    """Generate a studio photo and attach it to the selected record.

    ``generation_id`` updates that generation; ``product_id`` alone updates the
    legacy product; with neither the image is only uploaded.

    Returns:
        Public URL of the generated image
    """
    photographer.ensure_configured()
    generation = None
    product = None
    if generation_id:
        generation = get_owned_generation(session, generation_id, user_id)
    elif product_id:
        product = get_owned_product(session, product_id, user_id)

    png = await photographer.photograph(image_url)
    record_id = generation_id or product_id
    public_url = await storage.upload_png(
        png, prefix=PROCESSED_PREFIX, record_id=record_id
    )

    if generation is not None:
        set_generation_image(session, generation.id, public_url)
    elif product is not None:
        set_product_image(session, product, public_url)
    return public_url


async def hand_off_to_workflow(
    session: Session,
    user_id: str,
    image_url: str,
    generation_id: str,
    *,
    workflow: WorkflowClient,
    storage: ImageStorage,
) -> str:
    """Process a generation's image in the workflow engine and wait for it.

    The engine may also push the result later through the callback route,
    so this response is not the only way the row changes.

    Returns:
        Public URL of the processed image
    """
    workflow.ensure_configured()
    generation = get_owned_generation(session, generation_id, user_id)

    png = await workflow.process(image_url, generation.id)
    public_url = await storage.upload_png(
        png, prefix=EDITED_PREFIX, record_id=generation.id
    )
    set_generation_image(session, generation.id, public_url)
    return public_url

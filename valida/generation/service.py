"""Generation persistence scoped by owner."""

from collections.abc import Sequence
from datetime import timedelta

from sqlmodel import Session, col, select

from valida.generation.exceptions import GenerationNotFoundError
from valida.generation.lifecycle import expire_stale_generations, initial_status
from valida.generation.models import Generation
from valida.generation.schemas import GenerationCreate


def get_owned_generation(
    session: Session, generation_id: str, user_id: str
) -> Generation:
    """Load a generation the caller owns.

    Missing rows and rows of other users are indistinguishable to the caller.

    Raises:
        GenerationNotFoundError: If the caller does not own such a generation
    """
    generation = session.get(Generation, generation_id)
    if generation is None or generation.user_id != user_id:
        raise GenerationNotFoundError()
    return generation


def list_generations(
    session: Session,
    user_id: str,
    processing_timeout: timedelta | None = None,
) -> Sequence[Generation]:
    """List the caller's generations, newest first.

    Pending rows older than ``processing_timeout`` are expired first.
    """
    if processing_timeout is not None:
        expire_stale_generations(session, processing_timeout, user_id=user_id)
    statement = (
        select(Generation)
        .where(Generation.user_id == user_id)
        .order_by(col(Generation.created_at).desc())
    )
    return session.exec(statement).all()


def create_generation(
    session: Session, user_id: str, data: GenerationCreate
) -> Generation:
    generation = Generation(
        user_id=user_id,
        product_name=data.product_name,
        features=data.features,
        category=data.category,
        title=data.title,
        description=data.description,
        image_url=data.image_url,
        image_base64=data.image_base64,
        status=initial_status(data.title, data.description),
    )
    session.add(generation)
    session.commit()
    session.refresh(generation)
    return generation


def delete_generation(session: Session, generation_id: str, user_id: str) -> None:
    generation = get_owned_generation(session, generation_id, user_id)
    session.delete(generation)
    session.commit()

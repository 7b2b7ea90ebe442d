"""Generation status life-cycle.

``processando`` is the only non-terminal status; it moves to ``concluido``
or ``erro`` exactly once. ``image_url`` is orthogonal to the status: a row in
a terminal status stays mutable in that one field, and every write to it
goes through :func:`set_generation_image`.
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from valida.core.exceptions import PersistenceError
from valida.generation.exceptions import (
    GenerationNotFoundError,
    InvalidStatusTransitionError,
)
from valida.generation.models import Generation, GenerationStatus
from valida.realtime.broker import (
    GenerationEvent,
    GenerationEventBroker,
    get_event_broker,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[GenerationStatus, frozenset[GenerationStatus]] = {
    GenerationStatus.processando: frozenset(
        {GenerationStatus.concluido, GenerationStatus.erro}
    ),
    GenerationStatus.concluido: frozenset(),
    GenerationStatus.erro: frozenset(),
}


def can_transition(current: GenerationStatus, new_status: GenerationStatus) -> bool:
    return new_status in ALLOWED_TRANSITIONS[current]


def transition(generation: Generation, new_status: GenerationStatus) -> Generation:
    """Move a generation to a new status in place.

    Raises:
        InvalidStatusTransitionError: If the move is not allowed
    """
    current = GenerationStatus(generation.status)
    if not can_transition(current, new_status):
        raise InvalidStatusTransitionError(current.value, new_status.value)
    generation.status = new_status
    return generation


def initial_status(title: str | None, description: str | None) -> GenerationStatus:
    """Status of a new row: concluded only when it already carries its copy."""
    if title and title.strip() and description and description.strip():
        return GenerationStatus.concluido
    return GenerationStatus.processando


def expire_stale_generations(
    session: Session,
    older_than: timedelta,
    *,
    user_id: str | None = None,
    now: datetime | None = None,
) -> int:
    """Mark generations stuck in ``processando`` as ``erro``.

    Args:
        session: Database session
        older_than: Age after which a pending row counts as abandoned
        user_id: Restrict to one owner (None expires every owner's rows)
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of rows expired
    """
    cutoff = (now or datetime.now(UTC)) - older_than
    statement = select(Generation).where(
        Generation.status == GenerationStatus.processando,
        col(Generation.created_at) < cutoff,
    )
    if user_id is not None:
        statement = statement.where(Generation.user_id == user_id)

    stale = session.exec(statement).all()
    for generation in stale:
        transition(generation, GenerationStatus.erro)
        session.add(generation)
    if stale:
        session.commit()
        logger.info("Expired %d stale generations", len(stale))
    return len(stale)


def set_generation_image(
    session: Session,
    generation_id: str,
    image_url: str,
    broker: GenerationEventBroker | None = None,
) -> Generation:
    """Point a generation at a new image and notify its subscribers.

    The status is left untouched. Concurrent writers are not coordinated:
    the last committed URL wins.

    Raises:
        GenerationNotFoundError: If the generation does not exist
        PersistenceError: If the row update fails
    """
    generation = session.get(Generation, generation_id)
    if generation is None:
        raise GenerationNotFoundError()

    generation.image_url = image_url
    try:
        session.add(generation)
        session.commit()
        session.refresh(generation)
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError("Failed to update the generation image") from e

    logger.info(
        "Generation image updated",
        extra={"generation_id": generation_id, "user_id": generation.user_id},
    )
    (broker or get_event_broker()).publish(
        GenerationEvent(
            generation_id=generation.id,
            image_url=generation.image_url,
            status=GenerationStatus(generation.status).value,
        )
    )
    return generation

"""Generation domain router.

History of the caller's product listings. Every route is scoped by the
caller's id and refuses banned accounts.
"""

from fastapi import APIRouter, status

from valida.auth.dependencies import ActiveProfileDep
from valida.core.constants import CommonResponses, Routes
from valida.core.deps import SessionDep, SettingsDep
from valida.generation.schemas import GenerationCreate, GenerationRead
from valida.generation.service import (
    create_generation,
    delete_generation,
    get_owned_generation,
    list_generations,
)

router = APIRouter(
    prefix=Routes.GENERATION.prefix,
    tags=[Routes.GENERATION.tag],
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)


@router.get("", response_model=list[GenerationRead])
async def read_history(
    profile: ActiveProfileDep, session: SessionDep, settings: SettingsDep
):
    """List the caller's generations, newest first."""
    generations = list_generations(
        session, profile.id, processing_timeout=settings.processing_timeout
    )
    return [GenerationRead.from_model(g) for g in generations]


@router.post(
    "",
    response_model=GenerationRead,
    status_code=status.HTTP_201_CREATED,
    responses={**CommonResponses.BAD_REQUEST},
)
async def save_generation(
    payload: GenerationCreate, profile: ActiveProfileDep, session: SessionDep
):
    """Save a generation.

    Saved as ``concluido`` when title and description are both present,
    otherwise as ``processando``.
    """
    generation = create_generation(session, profile.id, payload)
    return GenerationRead.from_model(generation)


@router.get(
    "/{generation_id}",
    response_model=GenerationRead,
    responses={**CommonResponses.NOT_FOUND},
)
async def read_generation(
    generation_id: str, profile: ActiveProfileDep, session: SessionDep
):
    """Get one of the caller's generations."""
    generation = get_owned_generation(session, generation_id, profile.id)
    return GenerationRead.from_model(generation)


@router.delete(
    "/{generation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**CommonResponses.NOT_FOUND},
)
async def remove_generation(
    generation_id: str, profile: ActiveProfileDep, session: SessionDep
):
    """Delete one of the caller's generations."""
    delete_generation(session, generation_id, profile.id)

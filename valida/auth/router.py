"""Auth domain router.

Routes for the authenticated identity. Sign-in itself happens against
Supabase Auth directly; these routes only read and finish the account state.
"""

import logging

from fastapi import APIRouter

from valida.auth.dependencies import ActiveProfileDep, SupabaseAuthDep, TokenClaimsDep
from valida.auth.schemas import AuthMessage, FirstAccessRequest, MeRead
from valida.core.constants import CommonResponses, Routes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.AUTH.prefix,
    tags=[Routes.AUTH.tag],
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)


@router.get("/me", response_model=MeRead)
async def read_me(profile: ActiveProfileDep, claims: TokenClaimsDep):
    """Get the caller's profile and whether the initial password must change."""
    return MeRead.model_validate(
        {
            **profile.model_dump(),
            "is_first_access": claims.is_first_access,
        }
    )


@router.post(
    "/first-access",
    response_model=AuthMessage,
    responses={**CommonResponses.BAD_REQUEST},
)
async def complete_first_access(
    payload: FirstAccessRequest,
    profile: ActiveProfileDep,
    auth_service: SupabaseAuthDep,
):
    """Replace the initial password sent by email with a personal one.

    The client must refresh its session afterwards, since the current token
    still carries ``is_first_access``.
    """
    auth_service.complete_first_access(profile.id, payload.password)
    logger.info("First access completed", extra={"user_id": profile.id})
    return AuthMessage(message="Password updated successfully")

"""Profile domain router.

Routes for the caller's own profile.
"""

from fastapi import APIRouter

from valida.auth.dependencies import CurrentProfileDep
from valida.core.constants import CommonResponses, Routes
from valida.core.deps import SessionDep
from valida.profile.schemas import ProfileRead, ProfileUpdateMe

router = APIRouter(
    prefix=Routes.PROFILE.prefix,
    tags=[Routes.PROFILE.tag],
    responses={**CommonResponses.UNAUTHORIZED},
)


@router.get("/me", response_model=ProfileRead)
async def read_me(profile: CurrentProfileDep):
    """Get the caller's profile, including the ban flag."""
    return profile


@router.patch("/me", response_model=ProfileRead)
async def update_me(
    profile: CurrentProfileDep, profile_update: ProfileUpdateMe, session: SessionDep
):
    """Update the caller's display name.

    Users cannot modify their email or the admin and ban flags.
    """
    update_data = profile_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(profile, key, value)
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile

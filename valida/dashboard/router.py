"""Dashboard domain router.

Aggregate views over every account. Admin only.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from valida.auth.dependencies import AdminProfileDep, require_admin
from valida.core.constants import CommonResponses, Routes
from valida.core.deps import SessionDep
from valida.dashboard.schemas import DashboardStats, RecentGeneration
from valida.dashboard.service import (
    get_stats,
    list_profiles_with_totals,
    list_recent_generations,
)
from valida.profile.exceptions import ProfileNotFoundError
from valida.profile.models import Profile
from valida.profile.schemas import AdminProfileRead, ProfileBanUpdate, ProfileRead

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.DASHBOARD.prefix,
    tags=[Routes.DASHBOARD.tag],
    dependencies=[Depends(require_admin)],
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)


@router.get("/stats", response_model=DashboardStats)
async def read_stats(session: SessionDep):
    """Total users, generations created today and the error rate."""
    return get_stats(session)


@router.get("/users", response_model=list[AdminProfileRead])
async def read_users(session: SessionDep):
    """All profiles, newest first, with their generation count."""
    return list_profiles_with_totals(session)


@router.get("/generations/recent", response_model=list[RecentGeneration])
async def read_recent_generations(
    session: SessionDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
):
    """Latest generations across all users."""
    return list_recent_generations(session, limit)


@router.patch(
    "/users/{user_id}",
    response_model=ProfileRead,
    responses={**CommonResponses.NOT_FOUND},
)
async def update_user_ban(
    user_id: str,
    payload: ProfileBanUpdate,
    admin: AdminProfileDep,
    session: SessionDep,
):
    """Ban or unban an account."""
    profile = session.get(Profile, user_id)
    if profile is None:
        raise ProfileNotFoundError()
    profile.is_banned = payload.is_banned
    session.add(profile)
    session.commit()
    session.refresh(profile)
    logger.info(
        "Ban flag set to %s by %s",
        payload.is_banned,
        admin.id,
        extra={"user_id": user_id},
    )
    return profile

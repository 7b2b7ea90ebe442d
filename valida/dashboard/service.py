"""Aggregate queries behind the admin dashboard."""

import math
from datetime import UTC, datetime

from sqlalchemy import func
from sqlmodel import Session, col, select

from valida.dashboard.schemas import DashboardStats, RecentGeneration
from valida.generation.models import Generation, GenerationStatus
from valida.profile.models import Profile
from valida.profile.schemas import AdminProfileRead

UNKNOWN_USER = "Unknown user"


def error_rate(errors: int, total: int) -> int:
    """Rounded percentage (halves round up), 0 when there is nothing yet."""
    if total <= 0:
        return 0
    return math.floor(errors * 100 / total + 0.5)


def get_stats(session: Session, now: datetime | None = None) -> DashboardStats:
    now = now or datetime.now(UTC)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    total_users = session.exec(select(func.count()).select_from(Profile)).one()
    copies_today = session.exec(
        select(func.count())
        .select_from(Generation)
        .where(col(Generation.created_at) >= start_of_day)
    ).one()
    total_generations = session.exec(
        select(func.count()).select_from(Generation)
    ).one()
    failed_generations = session.exec(
        select(func.count())
        .select_from(Generation)
        .where(Generation.status == GenerationStatus.erro)
    ).one()

    return DashboardStats(
        total_users=total_users,
        copies_today=copies_today,
        error_rate=error_rate(failed_generations, total_generations),
    )


def list_profiles_with_totals(session: Session) -> list[AdminProfileRead]:
    """All profiles, newest first, with their number of generations."""
    total = func.count(col(Generation.id)).label("total_generations")
    statement = (
        select(Profile, total)
        .join(Generation, col(Generation.user_id) == col(Profile.id), isouter=True)
        .group_by(col(Profile.id))
        .order_by(col(Profile.created_at).desc())
    )
    return [
        AdminProfileRead.model_validate(
            {**profile.model_dump(), "total_generations": count}
        )
        for profile, count in session.exec(statement).all()
    ]


def list_recent_generations(session: Session, limit: int) -> list[RecentGeneration]:
    statement = (
        select(Generation, Profile)
        .join(Profile, col(Profile.id) == col(Generation.user_id), isouter=True)
        .order_by(col(Generation.created_at).desc())
        .limit(limit)
    )
    return [
        RecentGeneration(
            id=generation.id,
            user_id=generation.user_id,
            product_name=generation.product_name,
            category=generation.category,
            title=generation.title,
            status=generation.status,
            created_at=generation.created_at,
            user_email=profile.email if profile else UNKNOWN_USER,
            user_name=profile.name if profile else None,
        )
        for generation, profile in session.exec(statement).all()
    ]

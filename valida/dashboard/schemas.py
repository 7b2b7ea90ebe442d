"""Dashboard domain schemas."""

from datetime import datetime

from pydantic import BaseModel, field_serializer

from valida.generation.models import GenerationStatus
from valida.profile.schemas import format_utc


class DashboardStats(BaseModel):
    total_users: int
    copies_today: int
    # Percentage of all generations that ended in "erro", rounded
    error_rate: int


class RecentGeneration(BaseModel):
    """Latest generations across all users, with their owner."""

    id: str
    user_id: str
    product_name: str
    category: str
    title: str | None
    status: GenerationStatus
    created_at: datetime
    user_email: str
    user_name: str | None

    @field_serializer("created_at")
    def serialize_datetime(self, value: datetime) -> str:
        return format_utc(value)

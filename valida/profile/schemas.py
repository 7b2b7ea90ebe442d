"""Profile domain schemas.

Security notes:
- ProfileUpdateMe only carries ``name``; ``is_admin`` and ``is_banned`` are
  never settable by the owning user
- ProfileRead is what the owner sees, AdminProfileRead adds aggregate data
"""

from datetime import UTC, datetime

from pydantic import Field, field_serializer
from sqlmodel import SQLModel


def format_utc(value: datetime) -> str:
    """Format datetime as ISO 8601 string in UTC with a Z suffix."""
    if value.tzinfo is not None:
        utc_value = value.astimezone(UTC)
    else:
        # Naive datetime (SQLite drops tzinfo), assume UTC
        utc_value = value.replace(tzinfo=UTC)
    return utc_value.replace(microsecond=0).isoformat().replace("+00:00", "Z")


class ProfileRead(SQLModel):
    """Response schema for a profile."""

    id: str
    email: str
    name: str | None
    is_admin: bool
    is_banned: bool
    created_at: datetime

    @field_serializer("created_at")
    def serialize_datetime(self, value: datetime) -> str:
        return format_utc(value)


class AdminProfileRead(ProfileRead):
    """Profile row of the admin user listing."""

    total_generations: int = 0


class ProfileUpdateMe(SQLModel):
    """Schema for users updating their own profile."""

    name: str | None = Field(default=None, min_length=1, max_length=255)


class ProfileBanUpdate(SQLModel):
    """Schema for admins toggling the ban flag."""

    is_banned: bool

"""Profile domain models.

SQLModel table definition for Profile.
"""

from sqlmodel import Field, SQLModel

from valida.core.mixins import TimestampMixin


class Profile(TimestampMixin, SQLModel, table=True):
    """Account-level record holding the admin and ban flags.

    ``id`` equals the Supabase auth identity id. ``email`` and ``name`` are
    denormalized copies of the identity data.
    """

    __tablename__: str = "profiles"

    id: str = Field(primary_key=True, max_length=64)
    email: str = Field(index=True, max_length=255)
    name: str | None = Field(default=None, max_length=255)
    is_admin: bool = Field(default=False)
    is_banned: bool = Field(default=False)

"""Auth domain schemas."""

from pydantic import BaseModel, Field

from valida.profile.schemas import ProfileRead


class MeRead(ProfileRead):
    """Caller's profile plus the first-access flag of the auth identity."""

    is_first_access: bool = False


class FirstAccessRequest(BaseModel):
    """Request schema for replacing the initial password."""

    password: str = Field(min_length=6, max_length=128)


class AuthMessage(BaseModel):
    """Generic auth message response."""

    message: str

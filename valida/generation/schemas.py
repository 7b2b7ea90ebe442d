"""Generation domain schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, StringConstraints, field_serializer

from valida.generation.models import Generation, GenerationStatus
from valida.profile.schemas import format_utc

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class GenerationCreate(BaseModel):
    """Request schema for saving a generation.

    ``title`` and ``description`` come from a prior copy generation; a row
    saved with both is concluded, otherwise it stays pending.
    """

    product_name: RequiredText
    features: RequiredText
    category: RequiredText
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    image_base64: str | None = None


class GenerationRead(BaseModel):
    """Response schema for a generation owned by the caller."""

    id: str
    user_id: str
    product_name: str
    features: str
    category: str
    title: str | None
    description: str | None
    image_url: str | None
    display_image: str | None
    status: GenerationStatus
    created_at: datetime
    updated_at: datetime

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        return format_utc(value)

    @classmethod
    def from_model(cls, generation: Generation) -> "GenerationRead":
        return cls(
            id=generation.id,
            user_id=generation.user_id,
            product_name=generation.product_name,
            features=generation.features,
            category=generation.category,
            title=generation.title,
            description=generation.description,
            image_url=generation.image_url,
            display_image=generation.display_image,
            status=generation.status,
            created_at=generation.created_at,
            updated_at=generation.updated_at,
        )

"""Generation domain models.

SQLModel table definition for Generation and its status enum.
"""

import uuid
from enum import Enum

from sqlalchemy import Text
from sqlmodel import Field, SQLModel

from valida.core.mixins import TimestampMixin


class GenerationStatus(str, Enum):
    """Status of a copy generation.

    - processando: pending, waiting for copy to be generated (default)
    - concluido: copy generated and saved
    - erro: generation failed

    Image processing never changes the status.
    """

    processando = "processando"
    concluido = "concluido"
    erro = "erro"


def new_generation_id() -> str:
    return str(uuid.uuid4())


class Generation(TimestampMixin, SQLModel, table=True):
    """One product listing attempt owned by exactly one user."""

    __tablename__: str = "generations"

    id: str = Field(default_factory=new_generation_id, primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="profiles.id", index=True, max_length=64)
    product_name: str
    features: str = Field(sa_type=Text)
    category: str
    title: str | None = Field(default=None)
    description: str | None = Field(default=None, sa_type=Text)
    image_url: str | None = Field(default=None)
    # Legacy inline image kept for rows written before storage uploads
    image_base64: str | None = Field(default=None, sa_type=Text)
    status: GenerationStatus = Field(
        default=GenerationStatus.processando, max_length=20
    )

    @property
    def display_image(self) -> str | None:
        """Image to show: the stored object wins over the legacy inline image."""
        if self.image_url:
            return self.image_url
        if self.image_base64:
            if self.image_base64.startswith("data:"):
                return self.image_base64
            return f"data:image/png;base64,{self.image_base64}"
        return None

"""Imaging domain models."""

from sqlmodel import Field, SQLModel

from valida.core.mixins import TimestampMixin


class LegacyProduct(TimestampMixin, SQLModel, table=True):
    """Product row of the earlier product-centric screens.

    Only the studio photography gateway still writes to it, when called with
    a ``product_id`` and no ``generation_id``.
    """

    __tablename__: str = "products"

    id: str = Field(primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="profiles.id", index=True, max_length=64)
    processed_image_url: str | None = Field(default=None)

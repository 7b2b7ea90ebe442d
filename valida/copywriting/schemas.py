"""Copywriting domain schemas."""

from pydantic import BaseModel, field_validator


class CopyRequest(BaseModel):
    """Request schema for generating listing copy.

    Values are kept verbatim: the product name may become the title.
    """

    product_name: str
    features: str
    category: str

    @field_validator("product_name", "features", "category")
    @classmethod
    def require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class CopyResponse(BaseModel):
    """Generated listing copy."""

    title: str
    description: str

"""Imaging domain schemas.

Response field names follow what the web client already consumes
(``processedUrl``, ``imageUrl``).
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class RemoveBackgroundRequest(BaseModel):
    image_url: RequiredText
    # Id of the generation whose image is replaced
    product_id: RequiredText


class RemoveBackgroundResponse(BaseModel):
    success: bool = True
    processed_image_url: str


class StudioRequest(BaseModel):
    """Either id selects the row to update; ``generation_id`` wins."""

    image_url: RequiredText
    product_id: str | None = None
    generation_id: str | None = None


class StudioResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    processed_url: str = Field(alias="processedUrl")


class WorkflowRequest(BaseModel):
    image_url: RequiredText
    # Id of the generation whose image is replaced
    product_id: RequiredText


class WorkflowResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    image_url: str = Field(alias="imageUrl")
    message: str = "Image processed and saved successfully"


class WorkflowCallback(BaseModel):
    """Late result pushed by the workflow engine."""

    generation_id: RequiredText
    image_url: RequiredText


class WorkflowCallbackResponse(BaseModel):
    success: bool = True
    image_url: str

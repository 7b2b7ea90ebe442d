"""Webhook domain schemas."""

from pydantic import BaseModel, ConfigDict, Field


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the payment processor."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    user_id: str | None = Field(default=None, alias="userId")
    status: str | None = None

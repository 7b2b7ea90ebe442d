"""Hand-off to the external n8n workflow engine.

The engine answers with the processed PNG as the raw response body. A single
hand-off may take minutes, so the wall-clock bound is enforced here rather
than through the HTTP client's read timeout.
"""

import asyncio
import logging
from typing import Annotated

import httpx
from fastapi import Depends

from valida.core.exceptions import (
    ConfigurationError,
    UpstreamError,
    UpstreamTimeoutError,
)
from valida.core.http import get_workflow_client
from valida.core.settings import get_settings

logger = logging.getLogger(__name__)

WORKFLOW_TASK = "remove_background_studio"
MAX_ERROR_BODY_LENGTH = 500


class WorkflowClient:
    def __init__(
        self,
        webhook_url: str | None,
        timeout_seconds: float,
        http_client: httpx.AsyncClient,
    ):
        self._webhook_url = webhook_url
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client

    def ensure_configured(self) -> None:
        if not self._webhook_url:
            raise ConfigurationError("N8N_IMAGE_WEBHOOK_URL is not configured")

    async def process(self, image_url: str, record_id: str) -> bytes:
        """Hand the image to the workflow engine and wait for the PNG.

        Raises:
            ConfigurationError: If the webhook URL is not configured
            UpstreamTimeoutError: If the engine did not finish in time; the
                outbound request is cancelled
            UpstreamError: If the engine fails or answers with an empty body
        """
        self.ensure_configured()
        payload = {
            "image_url": image_url,
            "product_id": record_id,
            "task": WORKFLOW_TASK,
        }
        try:
            async with asyncio.timeout(self._timeout_seconds):
                response = await self._http_client.post(self._webhook_url, json=payload)
        except TimeoutError as e:
            logger.warning(
                "Workflow hand-off timed out after %.0fs",
                self._timeout_seconds,
                extra={"generation_id": record_id},
            )
            raise UpstreamTimeoutError(
                "Workflow processing took longer than "
                f"{self._timeout_seconds:g} seconds"
            ) from e
        except httpx.RequestError as e:
            raise UpstreamError(f"Workflow engine unreachable: {e}") from e

        if not response.is_success:
            raise UpstreamError(
                f"Workflow engine error: {response.status_code} - "
                f"{response.text[:MAX_ERROR_BODY_LENGTH]}",
                upstream_status=response.status_code,
            )
        if not response.content:
            raise UpstreamError("Workflow engine returned an empty image")
        return response.content


def get_workflow_gateway(
    http_client: Annotated[httpx.AsyncClient, Depends(get_workflow_client)],
) -> WorkflowClient:
    """Build the workflow client from settings (FastAPI dependency)."""
    settings = get_settings()
    return WorkflowClient(
        webhook_url=settings.n8n_image_webhook_url,
        timeout_seconds=settings.n8n_timeout_seconds,
        http_client=http_client,
    )

"""remove.bg background removal client."""

import httpx

from valida.core.deps import UpstreamClientDep
from valida.core.exceptions import ConfigurationError, UpstreamError
from valida.core.settings import get_settings

MAX_ERROR_BODY_LENGTH = 500


class RemoveBgClient:
    """Sends image bytes to remove.bg and returns the PNG cut-out."""

    def __init__(self, api_key: str | None, url: str, http_client: httpx.AsyncClient):
        self._api_key = api_key
        self._url = url
        self._http_client = http_client

    def ensure_configured(self) -> None:
        if not self._api_key:
            raise ConfigurationError("REMOVE_BG_API_KEY is not configured")

    async def remove_background(
        self, image: bytes, content_type: str = "image/png"
    ) -> bytes:
        """Remove the background of an image.

        Raises:
            ConfigurationError: If the API key is not configured
            UpstreamError: If remove.bg fails or returns an empty body
        """
        self.ensure_configured()
        try:
            response = await self._http_client.post(
                self._url,
                headers={"X-Api-Key": self._api_key},
                data={"size": "auto"},
                files={"image_file": ("image", image, content_type)},
            )
        except httpx.RequestError as e:
            raise UpstreamError(f"remove.bg unreachable: {e}") from e

        if not response.is_success:
            raise UpstreamError(
                f"remove.bg error: {response.status_code} - "
                f"{response.text[:MAX_ERROR_BODY_LENGTH]}",
                upstream_status=response.status_code,
            )
        if not response.content:
            raise UpstreamError("remove.bg returned an empty image")
        return response.content


def get_remove_bg_client(http_client: UpstreamClientDep) -> RemoveBgClient:
    """Build the remove.bg client from settings (FastAPI dependency)."""
    settings = get_settings()
    return RemoveBgClient(
        api_key=settings.remove_bg_api_key,
        url=settings.remove_bg_url,
        http_client=http_client,
    )

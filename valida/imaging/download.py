from dataclasses import dataclass

import httpx

from valida.imaging.exceptions import ImageDownloadError

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class DownloadedImage:
    content: bytes
    content_type: str


async def download_image(client: httpx.AsyncClient, url: str) -> DownloadedImage:
    """Download an image by URL.

    Raises:
        ImageDownloadError: If the URL is unreachable, answers with an error
            status, or returns an empty body
    """
    try:
        response = await client.get(url)
    except httpx.RequestError as e:
        raise ImageDownloadError(f"Failed to download image: {e}") from e

    if not response.is_success:
        raise ImageDownloadError(
            f"Failed to download image: {response.status_code}",
            upstream_status=response.status_code,
        )
    if not response.content:
        raise ImageDownloadError("Downloaded image is empty")

    content_type = response.headers.get("content-type", DEFAULT_IMAGE_CONTENT_TYPE)
    return DownloadedImage(
        content=response.content,
        content_type=content_type.split(";")[0].strip() or DEFAULT_IMAGE_CONTENT_TYPE,
    )

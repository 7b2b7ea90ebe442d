"""Two-stage studio photography: vision description, then image generation.

The generation prompt is derived entirely from the description, so a failed
first stage never reaches the second one.
"""

import base64
import binascii
import logging

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from valida.core.deps import UpstreamClientDep
from valida.core.exceptions import ConfigurationError, UpstreamError
from valida.core.settings import get_settings
from valida.imaging.download import DownloadedImage, download_image

logger = logging.getLogger(__name__)

VISION_PROMPT = (
    "Describe this product strictly visually in extreme detail "
    "(colors, materials, shape, textures) to guide a DALL-E 3 generation. "
    "Focus only on the product object itself. Output ONLY the description."
)
STUDIO_PROMPT_TEMPLATE = (
    "Professional commercial product photography of {description}. "
    "Clean white studio background, soft cinematic lighting, 4k resolution, "
    "hyperrealistic. The product is the main focus."
)
VISION_MAX_TOKENS = 500
IMAGE_SIZE = "1024x1024"
IMAGE_QUALITY = "hd"
MAX_ERROR_BODY_LENGTH = 500


def build_studio_prompt(description: str) -> str:
    return STUDIO_PROMPT_TEMPLATE.format(description=description.strip())


def _upstream_error(stage: str, error: Exception) -> UpstreamError:
    if isinstance(error, APIStatusError):
        body = error.response.text[:MAX_ERROR_BODY_LENGTH]
        return UpstreamError(
            f"{stage} API error: {error.status_code} - {body}",
            upstream_status=error.status_code,
        )
    return UpstreamError(f"{stage} API unreachable: {error}")


class StudioPhotographer:
    """Turns a product photo into a generated studio shot."""

    def __init__(
        self,
        api_key: str | None,
        http_client: httpx.AsyncClient,
        vision_model: str = "gpt-4o",
        image_model: str = "dall-e-3",
    ):
        self._api_key = api_key
        self._http_client = http_client
        self._vision_model = vision_model
        self._image_model = image_model
        self._openai: AsyncOpenAI | None = None

    def ensure_configured(self) -> None:
        if not self._api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

    @property
    def _client(self) -> AsyncOpenAI:
        self.ensure_configured()
        if self._openai is None:
            self._openai = AsyncOpenAI(
                api_key=self._api_key,
                http_client=self._http_client,
                max_retries=0,
            )
        return self._openai

    async def describe_product(self, image: DownloadedImage) -> str:
        """Stage 1: describe the product in the image, visually only.

        Raises:
            UpstreamError: If the vision model fails or answers nothing
        """
        encoded = base64.b64encode(image.content).decode("ascii")
        data_url = f"data:{image.content_type};base64,{encoded}"
        try:
            completion = await self._client.chat.completions.create(
                model=self._vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": VISION_PROMPT},
                            {"type": "image_url", "image_url": {"url": data_url}},
                        ],
                    }
                ],
                max_tokens=VISION_MAX_TOKENS,
            )
        except (APIStatusError, APIConnectionError) as e:
            raise _upstream_error("Vision", e) from e

        description = None
        if completion.choices:
            description = completion.choices[0].message.content
        if not description or not description.strip():
            raise UpstreamError("Vision API returned an empty description")
        return description

    async def generate_image(self, description: str) -> bytes:
        """Stage 2: generate a studio photo from the description.

        The image comes back either inline (``b64_json``) or as a short-lived
        URL that is downloaded right away.

        Raises:
            UpstreamError: If the image model fails or returns no image
        """
        try:
            result = await self._client.images.generate(
                model=self._image_model,
                prompt=build_studio_prompt(description),
                size=IMAGE_SIZE,
                quality=IMAGE_QUALITY,
                n=1,
            )
        except (APIStatusError, APIConnectionError) as e:
            raise _upstream_error("Image generation", e) from e

        image = result.data[0] if result.data else None
        if image is not None and image.b64_json:
            try:
                return base64.b64decode(image.b64_json, validate=True)
            except binascii.Error as e:
                raise UpstreamError(
                    "Image generation API returned invalid base64"
                ) from e
        if image is not None and image.url:
            generated = await download_image(self._http_client, image.url)
            return generated.content
        raise UpstreamError("Image generation API returned no image")

    async def photograph(self, source_url: str) -> bytes:
        """Run the whole pipeline and return the generated image bytes."""
        self.ensure_configured()
        source = await download_image(self._http_client, source_url)
        description = await self.describe_product(source)
        logger.info("Vision description ready (%d chars)", len(description))
        return await self.generate_image(description)


def get_studio_photographer(http_client: UpstreamClientDep) -> StudioPhotographer:
    """Build the studio pipeline from settings (FastAPI dependency)."""
    settings = get_settings()
    return StudioPhotographer(
        api_key=settings.openai_api_key,
        http_client=http_client,
        vision_model=settings.openai_vision_model,
        image_model=settings.openai_image_model,
    )

"""Google Gemini client for copy generation.

Each request tries an explicit, ordered list of candidate models once, one
after another, and stops at the first that answers with a success status.
Nothing about which model worked is remembered between requests.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from valida.copywriting.exceptions import GenerationUnavailableError
from valida.core.deps import UpstreamClientDep
from valida.core.exceptions import ConfigurationError, UpstreamError
from valida.core.http import get_upstream_client
from valida.core.retry import FallbackExhaustedError, first_success
from valida.core.settings import get_settings

logger = logging.getLogger(__name__)

GENERATE_METHOD = "generateContent"
LIST_MODELS_PATH = "v1beta/models"
# Keep diagnostics readable when an upstream answers with an HTML error page
MAX_ERROR_BODY_LENGTH = 500


def resolve_model_path(model: str) -> str:
    """Map a model identifier to its API path.

    ``models/x`` and bare names go to ``v1beta``; identifiers that already
    carry an API version are used as given.
    """
    model = model.strip().strip("/")
    if model.startswith(("v1/", "v1beta/")):
        return model
    if model.startswith("models/"):
        return f"v1beta/{model}"
    return f"v1beta/models/{model}"


@dataclass(frozen=True)
class GeminiAnswer:
    model: str
    text: str


class GeminiClient:
    """Calls ``generateContent`` with model fallback."""

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        models: Sequence[str],
        discover_models: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._models = list(models)
        self._discover_models = discover_models
        self._http_client = http_client

    @property
    def _client(self) -> httpx.AsyncClient:
        return self._http_client or get_upstream_client()

    def _ensure_api_key(self) -> str:
        if not self._api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        return self._api_key

    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self._ensure_api_key()}

    async def list_generation_models(self) -> list[str]:
        """List the models of this key that support ``generateContent``.

        Returns an empty list when the listing fails for any reason.
        """
        try:
            response = await self._client.get(
                f"{self._base_url}/{LIST_MODELS_PATH}", headers=self._headers()
            )
        except httpx.RequestError as e:
            logger.warning("Gemini model listing failed: %s", e)
            return []
        if not response.is_success:
            logger.warning(
                "Gemini model listing failed",
                extra={"upstream_status": response.status_code},
            )
            return []

        try:
            payload = response.json()
        except ValueError:
            return []
        models = payload.get("models") if isinstance(payload, dict) else None
        return [
            model["name"]
            for model in models or []
            if isinstance(model, dict)
            and model.get("name")
            and GENERATE_METHOD in (model.get("supportedGenerationMethods") or [])
        ]

    async def candidate_models(self) -> list[str]:
        """Models to try for this request, highest priority first."""
        if self._discover_models:
            discovered = await self.list_generation_models()
            if discovered:
                return discovered
        return list(self._models)

    async def _generate_with(self, model: str, prompt: str) -> dict[str, Any]:
        url = f"{self._base_url}/{resolve_model_path(model)}:{GENERATE_METHOD}"
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            response = await self._client.post(url, json=body, headers=self._headers())
        except httpx.RequestError as e:
            logger.warning(
                "Gemini model %s unreachable: %s", model, e, extra={"model": model}
            )
            raise UpstreamError(f"Model {model}: {e}") from e

        if not response.is_success:
            logger.warning(
                "Gemini model %s failed",
                model,
                extra={"model": model, "upstream_status": response.status_code},
            )
            raise UpstreamError(
                f"Model {model}: {response.status_code} - "
                f"{response.text[:MAX_ERROR_BODY_LENGTH]}",
                upstream_status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Model {model}: invalid JSON response") from e

    async def generate(self, prompt: str) -> GeminiAnswer:
        """Send the prompt to the first model that accepts it.

        Raises:
            ConfigurationError: If the API key is not configured
            GenerationUnavailableError: If every candidate model failed, or
                the model that answered returned no text
        """
        self._ensure_api_key()
        models = await self.candidate_models()
        answered: list[str] = []

        async def attempt(model: str) -> dict[str, Any]:
            data = await self._generate_with(model, prompt)
            answered.append(model)
            return data

        try:
            data = await first_success(models, attempt, exceptions=(UpstreamError,))
        except FallbackExhaustedError as e:
            last = e.attempts[-1] if e.attempts else None
            upstream_status = getattr(e.last_error, "upstream_status", None)
            raise GenerationUnavailableError(
                f"No model available. Last error: {last.error}"
                if last
                else "No model available: no candidate models configured",
                attempts=e.attempts,
                upstream_status=upstream_status,
            ) from e.last_error

        model = answered[-1]
        logger.info("Gemini model %s answered", model, extra={"model": model})
        text = _extract_text(data)
        if not text:
            raise GenerationUnavailableError(
                f"Model {model} returned an empty response"
            )
        return GeminiAnswer(model=model, text=text)


def _extract_text(data: Any) -> str | None:
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None


def get_gemini_client(http_client: UpstreamClientDep) -> GeminiClient:
    """Build the Gemini client from settings (FastAPI dependency)."""
    settings = get_settings()
    return GeminiClient(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url,
        models=settings.gemini_models_list,
        discover_models=settings.gemini_discover_models,
        http_client=http_client,
    )

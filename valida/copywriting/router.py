"""Copywriting domain router.

Generates Shopee listing copy. Nothing is persisted here: saving the result
is a separate call to the generations routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from valida.auth.dependencies import ActiveProfileDep
from valida.copywriting.gemini import GeminiClient, get_gemini_client
from valida.copywriting.normalize import normalize_copy
from valida.copywriting.prompts import build_prompt
from valida.copywriting.schemas import CopyRequest, CopyResponse
from valida.core.constants import CommonResponses, Routes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.COPY.prefix,
    tags=[Routes.COPY.tag],
    responses={
        **CommonResponses.BAD_REQUEST,
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.UPSTREAM,
    },
)

GeminiClientDep = Annotated[GeminiClient, Depends(get_gemini_client)]


@router.post("/generate", response_model=CopyResponse)
async def generate_copy(
    payload: CopyRequest, profile: ActiveProfileDep, gemini: GeminiClientDep
):
    """Generate an SEO title and a description for a product."""
    prompt = build_prompt(payload.product_name, payload.features, payload.category)
    answer = await gemini.generate(prompt)
    result = normalize_copy(answer.text, payload.product_name)
    logger.info(
        "Copy generated", extra={"user_id": profile.id, "model": answer.model}
    )
    return CopyResponse(title=result.title, description=result.description)

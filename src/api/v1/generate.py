"""Streaming p5.js code generation endpoint."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response, StreamingResponse

from core.config import get_settings
from schemas.generation import (
    PROVIDER_HEADER,
    GenerationErrorBody,
    GenerationRequest,
    ProviderName,
)
from services.generation.errors import (
    friendly_error_message,
    generate_error_ref,
    log_generation_error,
)
from services.generation.orchestrator import GenerationOrchestrator
from services.generation.providers import build_adapters
from services.generation.transcoder import relay_events


__all__ = ["generate_code", "get_orchestrator"]

router = APIRouter(tags=["generation"])

STREAM_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

PROMPT_REQUIRED_MESSAGE = "Prompt is required"
FALLBACK_TECHNICAL_MESSAGE = "Failed to generate code"


@lru_cache
def get_orchestrator() -> GenerationOrchestrator:
    """Process-wide orchestrator built once from configuration."""
    settings = get_settings()
    return GenerationOrchestrator(
        build_adapters(settings),
        default_provider=ProviderName(settings.DEFAULT_PROVIDER),
    )


@router.post(
    "/generate",
    response_class=StreamingResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": GenerationErrorBody},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": GenerationErrorBody},
    },
)
async def generate_code(
    payload: GenerationRequest,
    orchestrator: Annotated[GenerationOrchestrator, Depends(get_orchestrator)],
) -> Response:
    """Generate p5.js code and stream it back as server-sent events.

    The ``X-AI-Provider`` header names the provider that actually serves the
    stream, which differs from the requested one after a fallback.
    """
    if not payload.has_prompt:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=GenerationErrorBody(error=PROMPT_REQUIRED_MESSAGE).to_content(),
        )

    try:
        result = await orchestrator.open(payload)
    except Exception as exc:
        error_ref = generate_error_ref()
        log_generation_error(
            error_ref,
            exc,
            provider=payload.provider.value if payload.provider else None,
            prompt=payload.prompt,
        )
        technical_error = str(exc) or FALLBACK_TECHNICAL_MESSAGE
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=GenerationErrorBody(
                error=friendly_error_message(technical_error),
                error_ref=error_ref,
                technical_error=technical_error,
            ).to_content(),
        )

    return StreamingResponse(
        relay_events(result.stream),
        media_type="text/event-stream",
        headers={**STREAM_HEADERS, PROVIDER_HEADER: result.provider_used.value},
    )

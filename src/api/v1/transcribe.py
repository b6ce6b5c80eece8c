"""Speech-to-text endpoint for voice prompts."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, File, UploadFile, status
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.exceptions import TranscriptionNotConfiguredError
from schemas.generation import GenerationErrorBody, TranscriptionResponse
from services.transcription import transcribe_audio


logger = logging.getLogger(__name__)

router = APIRouter(tags=["transcription"])

DEFAULT_AUDIO_FILENAME = "audio.webm"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=GenerationErrorBody(error=message).to_content(),
    )


@router.post(
    "/transcribe",
    response_model=TranscriptionResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": GenerationErrorBody},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": GenerationErrorBody},
    },
)
async def transcribe(
    audio: Annotated[UploadFile | None, File()] = None,
) -> Any:
    """Transcribe an uploaded recording (multipart field ``audio``)."""
    if not get_settings().OPENAI_API_KEY:
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            TranscriptionNotConfiguredError().args[0],
        )

    if audio is None:
        return _error(status.HTTP_400_BAD_REQUEST, "No audio file provided")

    data = await audio.read()
    if not data:
        return _error(status.HTTP_400_BAD_REQUEST, "No audio file provided")

    try:
        text = await transcribe_audio(
            data,
            filename=audio.filename or DEFAULT_AUDIO_FILENAME,
            content_type=audio.content_type,
        )
    except Exception as exc:
        logger.exception("Transcription failed")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Transcription failed"
        )

    return TranscriptionResponse(text=text)

"""Speech-to-text for voice prompts using OpenAI's transcription API."""

from __future__ import annotations

import logging

from core.config import get_settings
from services.ai.model_factory import get_transcription_client


logger = logging.getLogger(__name__)

# Biases recognition toward the kind of requests children make
TRANSCRIPTION_PROMPT = (
    "This is a child describing what they want to create, like a game, "
    "animation, or artwork."
)
TRANSCRIPTION_LANGUAGE = "en"


async def transcribe_audio(
    audio: bytes,
    filename: str = "audio.webm",
    content_type: str | None = None,
) -> str:
    """Return the transcript of ``audio``.

    Raises:
        TranscriptionNotConfiguredError: If no OpenAI key is configured.
        openai.OpenAIError: Backend failures, message untouched.
    """
    client = get_transcription_client()
    settings = get_settings()

    upload = (filename, audio, content_type) if content_type else (filename, audio)
    transcription = await client.audio.transcriptions.create(
        file=upload,
        model=settings.TRANSCRIPTION_MODEL,
        language=TRANSCRIPTION_LANGUAGE,
        prompt=TRANSCRIPTION_PROMPT,
    )
    logger.debug("Transcribed %d bytes of audio", len(audio))
    return transcription.text

"""Centralized AI model factory for generation and transcription backends.

This module is the single place that knows how to build provider clients
from configuration:

    from services.ai.model_factory import (
        create_claude_model,
        create_gemini_model,
        get_transcription_client,
    )

    model = create_claude_model()  # pydantic-ai Model for Anthropic
    client = get_transcription_client()  # openai.AsyncOpenAI
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, cast

from pydantic_ai.models import Model
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.google import GoogleProvider

from core.config import get_settings
from core.exceptions import TranscriptionNotConfiguredError


if TYPE_CHECKING:
    from httpx import AsyncClient
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


def create_claude_model(
    model_name: str | None = None,
    *,
    api_key: str | None = None,
    http_client: AsyncClient | None = None,
) -> Model:
    """Create an Anthropic Claude model.

    Explicit arguments win over configuration so adapters built for tests or
    alternate deployments do not depend on process settings.

    Raises:
        ValueError: If no Anthropic API key is available.
    """
    settings = get_settings()
    key = api_key or settings.ANTHROPIC_API_KEY
    if not key:
        logger.warning("Anthropic API key not configured")
        raise ValueError("Claude requested but ANTHROPIC_API_KEY is not set")

    name = model_name or settings.CLAUDE_MODEL
    logger.info(f"Using Claude generation model: {name}")
    provider = AnthropicProvider(api_key=key, http_client=http_client)
    return AnthropicModel(name, provider=provider)


def create_gemini_model(
    model_name: str | None = None,
    *,
    api_key: str | None = None,
    http_client: AsyncClient | None = None,
) -> Model:
    """Create a Google Gemini model.

    Raises:
        ValueError: If no Gemini API key is available.
    """
    settings = get_settings()
    key = api_key or settings.GEMINI_API_KEY
    if not key:
        logger.warning("Gemini API key not configured")
        raise ValueError("Gemini requested but GEMINI_API_KEY is not set")

    name = model_name or settings.GEMINI_MODEL
    logger.info(f"Using Gemini generation model: {name}")
    provider = GoogleProvider(api_key=key, http_client=http_client)
    return cast(Model, GoogleModel(name, provider=provider))


@lru_cache
def get_transcription_client() -> AsyncOpenAI:
    """Get the cached OpenAI client used for speech-to-text.

    Raises:
        TranscriptionNotConfiguredError: If OPENAI_API_KEY is not configured.
    """
    settings = get_settings()
    if not settings.OPENAI_API_KEY:
        raise TranscriptionNotConfiguredError()

    from openai import AsyncOpenAI

    logger.info(f"Using OpenAI for transcription: {settings.TRANSCRIPTION_MODEL}")
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


def clear_transcription_client_cache() -> None:
    """Clear the cached transcription client (tests, config reloads)."""
    get_transcription_client.cache_clear()

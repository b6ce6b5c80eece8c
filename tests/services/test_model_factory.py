"""Tests for the centralized AI model factory."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from pydantic_ai import models

from core.exceptions import TranscriptionNotConfiguredError


# Block any real model requests in tests
models.ALLOW_MODEL_REQUESTS = False


class TestCreateClaudeModel:
    """Tests for create_claude_model."""

    @patch("services.ai.model_factory.get_settings")
    def test_creates_anthropic_model_from_settings(
        self, mock_settings: MagicMock
    ) -> None:
        """Test configuration supplies both key and model name."""
        mock_settings.return_value.ANTHROPIC_API_KEY = "test-key"
        mock_settings.return_value.CLAUDE_MODEL = "claude-test"

        from pydantic_ai.models.anthropic import AnthropicModel

        from services.ai.model_factory import create_claude_model

        model = create_claude_model()

        assert isinstance(model, AnthropicModel)
        assert model.model_name == "claude-test"

    @patch("services.ai.model_factory.get_settings")
    def test_explicit_arguments_win(self, mock_settings: MagicMock) -> None:
        """Test explicit key and model override configuration."""
        mock_settings.return_value.ANTHROPIC_API_KEY = None
        mock_settings.return_value.CLAUDE_MODEL = "claude-default"

        from services.ai.model_factory import create_claude_model

        model = create_claude_model("claude-explicit", api_key="explicit-key")

        assert model.model_name == "claude-explicit"

    @patch("services.ai.model_factory.get_settings")
    def test_raises_without_key(
        self, mock_settings: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test a missing key is a configuration error."""
        mock_settings.return_value.ANTHROPIC_API_KEY = None

        from services.ai.model_factory import create_claude_model

        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            create_claude_model()
        assert "Anthropic API key not configured" in caplog.text


class TestCreateGeminiModel:
    """Tests for create_gemini_model."""

    @patch("services.ai.model_factory.get_settings")
    def test_creates_google_model(self, mock_settings: MagicMock) -> None:
        """Test Gemini model construction from configuration."""
        mock_settings.return_value.GEMINI_API_KEY = "test-key"
        mock_settings.return_value.GEMINI_MODEL = "gemini-test"

        from pydantic_ai.models.google import GoogleModel

        from services.ai.model_factory import create_gemini_model

        model = create_gemini_model()

        assert isinstance(model, GoogleModel)
        assert model.model_name == "gemini-test"

    @patch("services.ai.model_factory.get_settings")
    def test_raises_without_key(self, mock_settings: MagicMock) -> None:
        """Test a missing key is a configuration error."""
        mock_settings.return_value.GEMINI_API_KEY = None

        from services.ai.model_factory import create_gemini_model

        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            create_gemini_model()


class TestGetTranscriptionClient:
    """Tests for the cached OpenAI transcription client."""

    def setup_method(self) -> None:
        from services.ai.model_factory import clear_transcription_client_cache

        clear_transcription_client_cache()

    def teardown_method(self) -> None:
        from services.ai.model_factory import clear_transcription_client_cache

        clear_transcription_client_cache()

    @patch("services.ai.model_factory.get_settings")
    def test_raises_when_not_configured(self, mock_settings: MagicMock) -> None:
        """Test transcription requires an OpenAI key."""
        mock_settings.return_value.OPENAI_API_KEY = None

        from services.ai.model_factory import get_transcription_client

        with pytest.raises(TranscriptionNotConfiguredError):
            get_transcription_client()

    @patch("services.ai.model_factory.get_settings")
    def test_client_is_cached(self, mock_settings: MagicMock) -> None:
        """Test the same client instance is reused."""
        mock_settings.return_value.OPENAI_API_KEY = "test-key"
        mock_settings.return_value.TRANSCRIPTION_MODEL = "whisper-1"

        from openai import AsyncOpenAI

        from services.ai.model_factory import get_transcription_client

        first = get_transcription_client()

        assert isinstance(first, AsyncOpenAI)
        assert get_transcription_client() is first

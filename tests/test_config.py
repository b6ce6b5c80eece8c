"""Tests for settings parsing and CORS configuration."""

import pytest
from fastapi.testclient import TestClient

from core.config import Settings, get_settings
from main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestCORSConfiguration:
    """Test CORS configuration adheres to security requirements."""

    def test_cors_preflight_request(self, client):
        """Test CORS preflight request is handled correctly."""
        response = client.options(
            "/api/v1/generate",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"

    def test_cors_request_exposes_provider_header(self, client):
        """Test browsers may read which provider served a stream."""
        response = client.get(
            "/api/v1/health",
            headers={"Origin": "http://localhost:3000"},
        )

        assert response.status_code == 200
        exposed = response.headers["Access-Control-Expose-Headers"].lower()
        assert "x-ai-provider" in exposed

    def test_cors_request_from_disallowed_origin(self, client):
        """Test CORS blocks requests from disallowed origins."""
        response = client.get(
            "/api/v1/health",
            headers={"Origin": "http://malicious-site.com"},
        )

        # Should still respond but without CORS headers for disallowed origin
        assert response.status_code == 200
        assert "Access-Control-Allow-Origin" not in response.headers


class TestCORSConfigValidation:
    """Test CORS configuration validation logic."""

    def test_cors_credentials_with_wildcard_prevented(self):
        """Test that wildcard origins are prevented when credentials are allowed."""
        with pytest.raises(ValueError, match="CORS configuration error"):
            Settings(CORS_ORIGINS=["*"], ALLOW_CREDENTIALS=True)

    def test_cors_origins_csv_parsing(self):
        """Test that CORS origins can be parsed from CSV string."""
        settings = Settings(
            CORS_ORIGINS="http://localhost:3000,https://app.example.com, http://127.0.0.1:3000",
        )

        assert settings.CORS_ORIGINS == [
            "http://localhost:3000",
            "https://app.example.com",
            "http://127.0.0.1:3000",
        ]

    def test_cors_origins_json_parsing(self):
        """Test that CORS origins can be parsed from JSON string."""
        settings = Settings(
            CORS_ORIGINS='["http://localhost:3000", "https://app.example.com"]',
        )

        assert settings.CORS_ORIGINS == ["http://localhost:3000", "https://app.example.com"]


class TestProviderSettings:
    """Test provider-related configuration."""

    def test_defaults(self):
        settings = Settings()

        assert settings.DEFAULT_PROVIDER == "claude"
        assert settings.GENERATION_MAX_TOKENS == 4096
        assert settings.PROVIDER_TIMEOUT_SECONDS is None
        assert settings.configured_providers == {"claude": False, "gemini": False}

    def test_configured_providers(self):
        settings = Settings(ANTHROPIC_API_KEY="a", GEMINI_API_KEY="g")

        assert settings.configured_providers == {"claude": True, "gemini": True}

    def test_max_tokens_must_be_positive(self):
        with pytest.raises(ValueError, match="GENERATION_MAX_TOKENS"):
            Settings(GENERATION_MAX_TOKENS=0)

    def test_unknown_default_provider_rejected(self):
        with pytest.raises(ValueError):
            Settings(DEFAULT_PROVIDER="openai")

    def test_get_settings_rejects_unknown_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "staging")

        with pytest.raises(ValueError, match="ENVIRONMENT"):
            get_settings()

    def test_get_settings_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        monkeypatch.setenv("PROVIDER_TIMEOUT_SECONDS", "12.5")

        settings = get_settings()

        assert settings.GEMINI_API_KEY == "from-env"
        assert settings.PROVIDER_TIMEOUT_SECONDS == 12.5

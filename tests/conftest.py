"""Shared test fixtures for pytest.

We pin ENVIRONMENT=test and clear provider keys before importing the app so
settings never pick up a developer's .env file or real credentials.
"""

import os
from collections.abc import AsyncGenerator, AsyncIterator, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from pydantic_ai import models
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models.function import AgentInfo, FunctionModel


os.environ["ENVIRONMENT"] = "test"
for _key in ("ANTHROPIC_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY"):
    os.environ.pop(_key, None)

# Tests must never reach a real model provider
models.ALLOW_MODEL_REQUESTS = False

from api.v1.generate import get_orchestrator
from core.config import get_settings
from main import app
from schemas.generation import ProviderName
from services.generation.providers import (
    ClaudeAdapter,
    GeminiAdapter,
    ProviderAdapter,
)


@pytest.fixture(autouse=True)
def _reset_cached_state() -> Generator[None, None, None]:
    """Cached settings and orchestrator must not leak between tests."""
    get_settings.cache_clear()
    get_orchestrator.cache_clear()
    yield
    app.dependency_overrides.clear()
    get_settings.cache_clear()
    get_orchestrator.cache_clear()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.
    """
    with TestClient(app) as client:
        yield client


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Async client driving the app in-process, for streaming responses."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def adapter_factory():
    """Build provider adapters backed by a scripted pydantic-ai FunctionModel.

    ``error`` is raised once ``fail_after`` chunks have been yielded, so
    ``fail_after=0`` fails while the stream is being opened. Each adapter
    records the messages it was sent in ``adapter.requests``.
    """

    def _make(
        name: ProviderName = ProviderName.CLAUDE,
        chunks: tuple[str, ...] = ("function setup() {}",),
        *,
        error: Exception | None = None,
        fail_after: int = 0,
        api_key: str | None = "test-key",
    ) -> ProviderAdapter:
        requests: list[list[ModelMessage]] = []

        async def stream_function(
            messages: list[ModelMessage], info: AgentInfo
        ) -> AsyncIterator[str]:
            requests.append(messages)
            for index, chunk in enumerate(chunks):
                if error is not None and index == fail_after:
                    raise error
                yield chunk
            if error is not None:
                raise error

        adapter_cls = ClaudeAdapter if name is ProviderName.CLAUDE else GeminiAdapter
        adapter = adapter_cls(
            api_key,
            f"test-{name.value}",
            model=FunctionModel(stream_function=stream_function),
        )
        adapter.requests = requests  # type: ignore[attr-defined]
        return adapter

    return _make

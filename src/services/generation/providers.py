"""Provider adapters: one AI backend each, normalized to token events.

Each adapter turns ``(prompt, prior code, reference image)`` into a
``TokenStream``. Adapters are the only code that knows a provider's native
stream shape; everything downstream sees ``TextEvent`` / ``DoneEvent``.

``open_stream`` performs the provider request eagerly, so authentication,
quota and rate-limit failures are raised from ``open_stream`` itself, before
any output exists. Failures after the first chunk are raised while iterating
the returned stream. Error messages are passed through untouched; the
orchestrator decides what they mean.

The provider response is read by a dedicated reader task that enters and
exits pydantic-ai's ``run_stream`` context itself. The stream is usually
opened by the request handler and consumed by the response body in another
task, and that context must be exited in the task that entered it.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from pydantic_ai import Agent
from pydantic_ai.messages import UserContent
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from schemas.generation import (
    TERMINAL_EVENTS,
    DoneEvent,
    ProviderName,
    TextEvent,
    TokenEvent,
)
from services.ai.model_factory import create_claude_model, create_gemini_model
from services.generation.prompts import (
    REFERENCE_IMAGE_INSTRUCTION,
    SYSTEM_PROMPT,
    build_user_message,
)
from services.images.reference import parse_reference_image


if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger(__name__)


class TokenStream:
    """Async iterator of token events that owns one provider connection.

    The connection is released when the stream reaches its terminal event,
    when iteration raises, or when ``aclose()`` is called, whichever comes
    first. ``aclose()`` is safe to call more than once, before iteration has
    started, and from a different task than the one that opened the stream.
    """

    def __init__(
        self,
        provider: ProviderName,
        events: AsyncIterator[TokenEvent],
        reader: asyncio.Task[None] | None = None,
    ) -> None:
        self.provider = provider
        self._events = events
        self._reader = reader
        self._finished = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> TokenStream:
        return self

    async def __anext__(self) -> TokenEvent:
        if self._finished:
            raise StopAsyncIteration
        try:
            event = await anext(self._events)
        except BaseException:
            self._finished = True
            await self.aclose()
            raise
        if isinstance(event, TERMINAL_EVENTS):
            self._finished = True
            await self.aclose()
        return event

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._finished = True
        try:
            aclose = getattr(self._events, "aclose", None)
            if aclose is not None:
                await aclose()
        finally:
            if self._reader is not None:
                await _stop_reader(self._reader)

    async def __aenter__(self) -> TokenStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


@dataclass(slots=True)
class _ReadFailure:
    """Queue item carrying an error raised after the stream opened."""

    error: Exception


async def _stop_reader(reader: asyncio.Task[None]) -> None:
    if not reader.done():
        reader.cancel()
    # asyncio.wait does not re-raise the reader's cancellation into the caller
    await asyncio.wait([reader])


async def _read_provider(
    agent: Agent[None, str],
    user_prompt: str | Sequence[UserContent],
    model_settings: ModelSettings,
    opened: asyncio.Future[None],
    queue: asyncio.Queue[TokenEvent | _ReadFailure],
) -> None:
    """Reader task body: owns the ``run_stream`` context from entry to exit."""
    try:
        async with agent.run_stream(user_prompt, model_settings=model_settings) as result:
            opened.set_result(None)
            # debounce_by=None forwards every provider delta as it arrives
            async for delta in result.stream_text(delta=True, debounce_by=None):
                if delta:
                    queue.put_nowait(TextEvent(delta))
        queue.put_nowait(DoneEvent())
    except Exception as exc:
        if not opened.done():
            opened.set_exception(exc)
        else:
            queue.put_nowait(_ReadFailure(exc))
    finally:
        # Cancelled before the provider answered
        if not opened.done():
            opened.cancel()


async def _queued_events(
    queue: asyncio.Queue[TokenEvent | _ReadFailure],
) -> AsyncIterator[TokenEvent]:
    while True:
        item = await queue.get()
        if isinstance(item, _ReadFailure):
            raise item.error
        yield item
        if isinstance(item, TERMINAL_EVENTS):
            return


class ProviderAdapter(ABC):
    """Base adapter around a pydantic-ai model for one provider."""

    name: ClassVar[ProviderName]

    def __init__(
        self,
        api_key: str | None,
        model_name: str,
        *,
        max_tokens: int = 4096,
        timeout: float | None = None,
        model: Model | None = None,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._model = model
        self._agent: Agent[None, str] | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @abstractmethod
    def _create_model(self) -> Model:
        """Build the provider's pydantic-ai model."""

    def _get_agent(self) -> Agent[None, str]:
        # Built lazily so constructing an adapter never needs network or keys
        if self._agent is None:
            model = self._model or self._create_model()
            self._agent = Agent(
                model,
                output_type=str,
                system_prompt=SYSTEM_PROMPT,
                name=f"vibes-{self.name.value}",
            )
        return self._agent

    def model_settings(self) -> ModelSettings:
        settings = ModelSettings(max_tokens=self.max_tokens)
        if self.timeout is not None:
            settings["timeout"] = self.timeout
        return settings

    def build_user_prompt(
        self,
        prompt: str,
        prior_code: str | None = None,
        is_modification: bool = False,
        reference_image: str | None = None,
    ) -> str | Sequence[UserContent]:
        message = build_user_message(prompt, prior_code, is_modification)
        image = parse_reference_image(reference_image)
        if image is None:
            return message
        return [image.to_binary_content(), f"{REFERENCE_IMAGE_INSTRUCTION}{message}"]

    async def open_stream(
        self,
        prompt: str,
        prior_code: str | None = None,
        is_modification: bool = False,
        reference_image: str | None = None,
    ) -> TokenStream:
        """Start a generation and return its token stream.

        Raises:
            ValueError: If ``prompt`` is blank.
            Exception: Whatever the provider raised before streaming began.
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must be a non-empty string")

        user_prompt = self.build_user_prompt(
            prompt, prior_code, is_modification, reference_image
        )
        agent = self._get_agent()

        loop = asyncio.get_running_loop()
        opened: asyncio.Future[None] = loop.create_future()
        queue: asyncio.Queue[TokenEvent | _ReadFailure] = asyncio.Queue()
        reader = asyncio.create_task(
            _read_provider(agent, user_prompt, self.model_settings(), opened, queue),
            name=f"vibes-{self.name.value}-reader",
        )
        try:
            await opened
        except BaseException:
            await _stop_reader(reader)
            raise

        logger.debug(
            "Opened %s stream (model=%s, modification=%s, image=%s)",
            self.name.value,
            self.model_name,
            is_modification,
            not isinstance(user_prompt, str),
        )
        return TokenStream(self.name, _queued_events(queue), reader)


class ClaudeAdapter(ProviderAdapter):
    name = ProviderName.CLAUDE

    def _create_model(self) -> Model:
        return create_claude_model(self.model_name, api_key=self.api_key)


class GeminiAdapter(ProviderAdapter):
    name = ProviderName.GEMINI

    def _create_model(self) -> Model:
        return create_gemini_model(self.model_name, api_key=self.api_key)


def build_adapters(settings: Settings) -> dict[ProviderName, ProviderAdapter]:
    """Create one adapter per provider from configuration."""
    common = {
        "max_tokens": settings.GENERATION_MAX_TOKENS,
        "timeout": settings.PROVIDER_TIMEOUT_SECONDS,
    }
    return {
        ProviderName.CLAUDE: ClaudeAdapter(
            settings.ANTHROPIC_API_KEY, settings.CLAUDE_MODEL, **common
        ),
        ProviderName.GEMINI: GeminiAdapter(
            settings.GEMINI_API_KEY, settings.GEMINI_MODEL, **common
        ),
    }

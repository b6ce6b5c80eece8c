"""Client-side driver for the streaming generation endpoint."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import aclosing
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from schemas.generation import (
    PROVIDER_HEADER,
    DoneEvent,
    ErrorEvent,
    GenerationRequest,
    ProviderName,
    TextEvent,
)
from services.generation.prompts import is_modification_request
from services.generation.transcoder import INCOMPLETE_STREAM_MESSAGE, decode_stream


logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "/api/v1/generate"
GENERIC_FAILURE_MESSAGE = "Failed to generate code"
NETWORK_FAILURE_MESSAGE = "An error occurred"
INVALID_REQUEST_MESSAGE = "That request could not be sent"

ChunkCallback = Callable[[str], None]
CompleteCallback = Callable[[str], None]
ErrorCallback = Callable[[str, "ErrorInfo"], None]


@dataclass(slots=True)
class ErrorInfo:
    message: str
    error_ref: str | None = None
    technical_error: str | None = None


@dataclass(slots=True)
class GenerationOutcome:
    """Result of one ``generate`` call.

    ``full_text`` holds whatever arrived, so a failed call may carry partial
    code; only ``completed`` outcomes are safe to display as a finished sketch.
    """

    full_text: str
    provider: str | None = None
    completed: bool = False
    error_info: ErrorInfo | None = None


def _error_info_from_response(response: httpx.Response) -> ErrorInfo:
    """Read the endpoint's ``{error, errorRef, technicalError}`` body.

    The app-wide envelope (404, 422) carries a dict under ``error`` and its
    text under ``message``; only string fields are taken from either shape.
    """
    try:
        payload = response.json()
    except ValueError:
        return ErrorInfo(message=GENERIC_FAILURE_MESSAGE)
    if not isinstance(payload, dict):
        return ErrorInfo(message=GENERIC_FAILURE_MESSAGE)

    def text(key: str) -> str | None:
        value = payload.get(key)
        return value if isinstance(value, str) and value else None

    return ErrorInfo(
        message=text("error") or text("message") or GENERIC_FAILURE_MESSAGE,
        error_ref=text("errorRef"),
        technical_error=text("technicalError"),
    )


class GenerationController:
    """Sends generation requests and reassembles the streamed code.

    Exactly one of ``on_complete`` / ``on_error`` fires per call. Concurrent
    calls are allowed; each keeps its own buffer, and ``is_generating`` stays
    true until the last one finishes.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        endpoint: str = DEFAULT_ENDPOINT,
        on_chunk: ChunkCallback | None = None,
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._http = http_client
        self.endpoint = endpoint
        self.on_chunk = on_chunk
        self.on_complete = on_complete
        self.on_error = on_error
        self.error: str | None = None
        self._in_flight = 0

    @property
    def is_generating(self) -> bool:
        return self._in_flight > 0

    async def generate(
        self,
        prompt: str,
        current_code: str | None = None,
        reference_image: str | None = None,
        provider: ProviderName | str | None = None,
    ) -> GenerationOutcome:
        self.error = None
        try:
            request = GenerationRequest(
                prompt=prompt,
                current_code=current_code,
                is_modification=is_modification_request(current_code),
                reference_image=reference_image,
                provider=provider,
            )
        except ValidationError as exc:
            logger.warning("Invalid generation request: %s", exc)
            return self._fail(
                ErrorInfo(message=INVALID_REQUEST_MESSAGE, technical_error=str(exc)), []
            )

        self._in_flight += 1
        chunks: list[str] = []
        served_by: str | None = None
        try:
            async with self._http.stream(
                "POST",
                self.endpoint,
                json=request.model_dump(mode="json", by_alias=True, exclude_none=True),
            ) as response:
                if response.is_error:
                    await response.aread()
                    return self._fail(_error_info_from_response(response), chunks)

                served_by = response.headers.get(PROVIDER_HEADER)
                async with aclosing(decode_stream(response.aiter_bytes())) as events:
                    async for event in events:
                        if isinstance(event, TextEvent):
                            chunks.append(event.text)
                            if self.on_chunk:
                                self.on_chunk(event.text)
                        elif isinstance(event, DoneEvent):
                            return self._succeed(chunks, served_by)
                        elif isinstance(event, ErrorEvent):
                            return self._fail(
                                ErrorInfo(message=event.message), chunks, served_by
                            )
        except httpx.HTTPError as exc:
            logger.warning("Generation request failed: %s", exc)
            return self._fail(
                ErrorInfo(message=str(exc) or NETWORK_FAILURE_MESSAGE),
                chunks,
                served_by,
            )
        finally:
            self._in_flight -= 1

        return self._fail(ErrorInfo(message=INCOMPLETE_STREAM_MESSAGE), chunks, served_by)

    def _succeed(self, chunks: list[str], provider: str | None) -> GenerationOutcome:
        full_text = "".join(chunks)
        if self.on_complete:
            self.on_complete(full_text)
        return GenerationOutcome(full_text=full_text, provider=provider, completed=True)

    def _fail(
        self, info: ErrorInfo, chunks: list[str], provider: str | None = None
    ) -> GenerationOutcome:
        self.error = info.message
        if self.on_error:
            self.on_error(info.message, info)
        return GenerationOutcome(
            full_text="".join(chunks), provider=provider, error_info=info
        )

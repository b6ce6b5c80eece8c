"""Schemas for streaming code generation.

Wire-level request/response models for the generation endpoint plus the
provider-neutral token events that flow between adapters, the orchestrator
and the transcoder.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from services.generation.prompts import is_modification_request


SSE_DATA_PREFIX = "data: "
SSE_DONE_MARKER = "[DONE]"
PROVIDER_HEADER = "X-AI-Provider"


class ProviderName(StrEnum):
    """Generation backends. Claude is provider A, Gemini provider B."""

    CLAUDE = "claude"
    GEMINI = "gemini"

    @property
    def alternate(self) -> ProviderName:
        return ProviderName.GEMINI if self is ProviderName.CLAUDE else ProviderName.CLAUDE


class TokenKind(StrEnum):
    TEXT = "text"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class TextEvent:
    """An incremental fragment of generated code."""

    text: str
    kind: ClassVar[TokenKind] = TokenKind.TEXT


@dataclass(frozen=True, slots=True)
class DoneEvent:
    """Terminal event: the provider finished normally."""

    kind: ClassVar[TokenKind] = TokenKind.DONE


@dataclass(frozen=True, slots=True)
class ErrorEvent:
    """Terminal event: the stream failed."""

    message: str
    kind: ClassVar[TokenKind] = TokenKind.ERROR


TokenEvent = TextEvent | DoneEvent | ErrorEvent
TERMINAL_EVENTS = (DoneEvent, ErrorEvent)


class StreamChunk(BaseModel):
    """Payload of one text event on the wire."""

    text: str

    model_config = ConfigDict(extra="ignore")

    def to_sse(self) -> str:
        return f"{SSE_DATA_PREFIX}{self.model_dump_json()}\n\n"


class GenerationRequest(BaseModel):
    """Request payload for ``POST /generate``.

    ``prompt`` is optional at the schema level so the endpoint can answer a
    missing prompt with its own 400 body instead of a validation envelope.
    """

    prompt: str | None = None
    current_code: str | None = Field(default=None, alias="currentCode")
    is_modification: bool | None = Field(default=None, alias="isModification")
    provider: ProviderName | None = None
    reference_image: str | None = Field(default=None, alias="referenceImage")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="after")
    def _normalize_modification_flag(self) -> GenerationRequest:
        """A modification needs real prior code; derive the flag when omitted."""
        has_prior_code = is_modification_request(self.current_code)
        if self.is_modification is None:
            self.is_modification = has_prior_code
        else:
            self.is_modification = self.is_modification and has_prior_code
        return self

    @property
    def has_prompt(self) -> bool:
        return bool(self.prompt and self.prompt.strip())


class GenerationErrorBody(BaseModel):
    """JSON body returned when a generation cannot start."""

    error: str
    error_ref: str | None = Field(default=None, alias="errorRef")
    technical_error: str | None = Field(default=None, alias="technicalError")

    model_config = ConfigDict(populate_by_name=True)

    def to_content(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TranscriptionResponse(BaseModel):
    text: str


class ProviderStatus(BaseModel):
    """Which generation providers have credentials (never the keys)."""

    claude: bool
    gemini: bool
    transcription: bool


class HealthStatus(BaseModel):
    status: str = "healthy"
    providers: ProviderStatus

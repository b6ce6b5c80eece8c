"""Provider selection and two-way fallback.

Lifecycle of one request::

    idle -> provider selected -> streaming -> done | error
                              \\-> setup failed (transient) -> alternate selected
                                   -> streaming -> done | error

Only failures raised while *opening* a stream can trigger the fallback, and
only when the message matches ``FALLBACK_PATTERNS`` and the alternate provider
has credentials. Once a stream is open, errors belong to that stream.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from core.exceptions import NoProviderConfiguredError
from schemas.generation import GenerationRequest, ProviderName
from services.generation.providers import ProviderAdapter, TokenStream


logger = logging.getLogger(__name__)


# Ordered (substring -> classification) table; matching is case-sensitive
FALLBACK_PATTERNS: tuple[tuple[str, str], ...] = (
    ("credit", "quota_exhausted"),
    ("rate", "rate_limited"),
    ("quota", "quota_exhausted"),
)


@dataclass(slots=True)
class ProviderResult:
    """The stream that will serve a request and the provider behind it."""

    provider_used: ProviderName
    stream: TokenStream
    fell_back: bool = False


def classify_fallback(message: str) -> str | None:
    """Return the transient-failure class for ``message``, if any."""
    for pattern, classification in FALLBACK_PATTERNS:
        if pattern in message:
            return classification
    return None


def select_provider(
    preference: ProviderName | None,
    adapters: Mapping[ProviderName, ProviderAdapter],
    default: ProviderName = ProviderName.CLAUDE,
) -> ProviderName:
    """Pick the provider that should try the request first.

    The caller's preference wins when that provider is configured, then the
    default, then whichever provider has credentials.

    Raises:
        NoProviderConfiguredError: If no provider has credentials.
    """

    def configured(name: ProviderName) -> bool:
        adapter = adapters.get(name)
        return adapter is not None and adapter.is_configured

    wanted = preference or default
    for candidate in (wanted, wanted.alternate):
        if configured(candidate):
            return candidate
    raise NoProviderConfiguredError()


class GenerationOrchestrator:
    """Opens a generation stream with at most one fallback attempt."""

    def __init__(
        self,
        adapters: Mapping[ProviderName, ProviderAdapter],
        default_provider: ProviderName = ProviderName.CLAUDE,
    ) -> None:
        self.adapters = dict(adapters)
        self.default_provider = default_provider

    def is_configured(self, name: ProviderName) -> bool:
        adapter = self.adapters.get(name)
        return adapter is not None and adapter.is_configured

    async def _open(self, name: ProviderName, request: GenerationRequest) -> TokenStream:
        adapter = self.adapters[name]
        return await adapter.open_stream(
            request.prompt or "",
            prior_code=request.current_code,
            is_modification=bool(request.is_modification),
            reference_image=request.reference_image,
        )

    async def open(self, request: GenerationRequest) -> ProviderResult:
        """Open a stream for ``request``.

        Raises:
            NoProviderConfiguredError: If no provider has credentials.
            Exception: The provider's own error when it is not a transient
                quota/rate failure, when the alternate provider is not
                configured, or when the alternate fails too.
        """
        selected = select_provider(request.provider, self.adapters, self.default_provider)
        logger.info("Generation provider selected: %s", selected.value)

        try:
            stream = await self._open(selected, request)
        except Exception as exc:
            classification = classify_fallback(str(exc))
            alternate = selected.alternate
            if classification is None or not self.is_configured(alternate):
                raise
            logger.warning(
                "%s failed before streaming (%s), falling back to %s: %s",
                selected.value,
                classification,
                alternate.value,
                exc,
            )
            stream = await self._open(alternate, request)
            logger.info("Streaming from fallback provider %s", alternate.value)
            return ProviderResult(provider_used=alternate, stream=stream, fell_back=True)

        logger.info("Streaming from provider %s", selected.value)
        return ProviderResult(provider_used=selected, stream=stream)

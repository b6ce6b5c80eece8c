"""User-facing error presentation for failed generations."""

from __future__ import annotations

import secrets
import string
import time

from core.error_handler import StructuredLogger


logger = StructuredLogger(__name__)

ERROR_REF_PREFIX = "VB"
_BASE36 = string.digits + string.ascii_uppercase

GENERIC_ERROR_MESSAGE = "Something went wrong while creating your masterpiece."

# Ordered (keywords -> friendly sentence); the first row with any keyword
# contained in the raw message wins.
USER_ERROR_MESSAGES: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("credit", "quota"),
        "Our AI helpers are taking a break. Please try again in a moment!",
    ),
    (
        ("rate",),
        "Whoa, too many requests! Give our AI wizards a few seconds to catch up.",
    ),
    (
        ("network", "fetch"),
        "Having trouble connecting to our magic servers. Check your internet!",
    ),
)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_error_ref() -> str:
    """Support reference for one failure, e.g. ``VB-M2K9ZQ1A-4FJX``."""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{ERROR_REF_PREFIX}-{timestamp}-{suffix}"


def friendly_error_message(technical_message: str) -> str:
    for keywords, message in USER_ERROR_MESSAGES:
        if any(keyword in technical_message for keyword in keywords):
            return message
    return GENERIC_ERROR_MESSAGE


def log_generation_error(
    error_ref: str,
    exc: BaseException,
    *,
    provider: str | None = None,
    prompt: str | None = None,
) -> None:
    """Record a failed generation with everything support needs to find it."""
    logger.exception(
        f"Generation failed [{error_ref}]",
        error_ref=error_ref,
        provider=provider or "unknown",
        prompt_preview=(prompt or "")[:100],
        exception_type=type(exc).__name__,
        error=str(exc),
    )

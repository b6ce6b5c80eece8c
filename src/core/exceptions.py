class DomainError(Exception):
    """Base class for domain-specific errors."""

    pass


class GenerationError(DomainError):
    """Base class for failures while starting a code generation."""

    pass


class NoProviderConfiguredError(GenerationError):
    """Raised when neither generation provider has credentials."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No AI provider configured. Please add ANTHROPIC_API_KEY or "
            "GEMINI_API_KEY to your environment."
        )


class TranscriptionNotConfiguredError(DomainError):
    """Raised when speech-to-text is requested without OpenAI credentials."""

    def __init__(self, message: str = "OpenAI API key not configured") -> None:
        super().__init__(message)

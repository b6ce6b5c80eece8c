from fastapi import APIRouter

from core.config import get_settings
from schemas.api import ApiResponse
from schemas.generation import HealthStatus, ProviderStatus


router = APIRouter()


@router.get("/health", response_model=ApiResponse[HealthStatus])
def health_check() -> ApiResponse[HealthStatus]:
    """Health check endpoint for monitoring and load balancer health checks.

    Also reports which providers have credentials, as booleans only.
    """
    settings = get_settings()
    configured = settings.configured_providers
    return ApiResponse(
        success=True,
        data=HealthStatus(
            providers=ProviderStatus(
                claude=configured["claude"],
                gemini=configured["gemini"],
                transcription=bool(settings.OPENAI_API_KEY),
            )
        ),
        message="VIBES API is running",
    )

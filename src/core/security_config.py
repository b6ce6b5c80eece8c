"""Security configuration constants for the VIBES API.

This module centralizes security-related configuration including:
- Sensitive keys that should be sanitized from logs
- Error handling security settings
"""

# Keys that are automatically redacted from structured logs
SENSITIVE_KEYS: set[str] = {
    # Provider credentials
    "api_key",
    "anthropic_api_key",
    "gemini_api_key",
    "openai_api_key",
    "secret",
    "token",
    "access_token",
    "authorization",
    "auth_token",
    "bearer",
    # Request headers
    "set-cookie",
    "cookie",
    "x-api-key",
    "x-goog-api-key",
    "x-auth-token",
    "x-session-id",
    "authentication",
    "auth",
    # Personal data
    "password",
    "email",
    "phone",
    "address",
}

# Production-only error response fields
# In production, error responses should only contain these fields to
# prevent information leakage
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
}

# Development error response fields (additional fields allowed in development)
DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Get allowed error response fields based on environment.

    Args:
        environment: The application environment (production, development, etc.)

    Returns:
        Set of allowed field names for error responses
    """
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    else:
        return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)

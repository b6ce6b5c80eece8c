"""Middleware for request correlation ID tracking."""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.error_handler import StructuredLogger, set_correlation_id


CORRELATION_HEADER = "X-Correlation-ID"

request_logger = StructuredLogger("vibes.requests")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation ID.

    The ID comes from the ``X-Correlation-ID`` request header when present,
    otherwise a fresh UUID. It is stored in the logging context, exposed on
    ``request.state`` and echoed back in the response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

        set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        started = time.monotonic()
        response = await call_next(request)
        # Streaming bodies keep flowing after this point; the duration covers
        # time to first byte only.
        request_logger.debug(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response

# backend/app/middleware/correlation.py
"""
Correlation ID middleware.

Each request gets a correlation id, taken from the X-Correlation-ID or
X-Request-ID header or generated as a UUID4. It is stored in the request
context (so every log line of the request carries it) and echoed in the
X-Correlation-ID response header.

    curl -H "X-Correlation-ID: my-trace-123" http://localhost:8000/health
"""

import logging
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.utils.context import set_correlation_id, set_request_path, clear_request_context

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attaches a correlation id to the request context and the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER)
            or request.headers.get(REQUEST_ID_HEADER)
            or str(uuid.uuid4())
        )
        set_correlation_id(correlation_id)
        set_request_path(request.method, request.url.path)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_request_context()

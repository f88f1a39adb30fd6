"""
Correlation IDs for request and background-job tracing.

Usage:
    from app.shared.correlation import CorrelationMiddleware, get_correlation_id

    # In main.py:
    app.add_middleware(CorrelationMiddleware)

    # In background jobs (e.g. an enrichment run):
    with CorrelationContext("enrich-1a2b3c4d"):
        logger.info("Processing batch")

The request correlation ID is:
- Read from X-Correlation-ID or X-Request-ID header if present
- Generated as a new short UUID if not present
- Stored in request.state.correlation_id for endpoint access
- Added to response headers for client debugging
- Made available via get_correlation_id() for logging
"""

import uuid
import contextvars
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


_correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)

CORRELATION_HEADERS = [
    "X-Correlation-ID",
    "X-Request-ID",
]

RESPONSE_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Correlation ID of the current context, or None."""
    return _correlation_id_ctx.get()


def generate_correlation_id() -> str:
    """UUID4 truncated to 8 characters."""
    return str(uuid.uuid4())[:8]


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to every request and its response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        correlation_id = None
        for header in CORRELATION_HEADERS:
            correlation_id = request.headers.get(header)
            if correlation_id:
                break

        if not correlation_id:
            correlation_id = generate_correlation_id()

        request.state.correlation_id = correlation_id
        token = _correlation_id_ctx.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers[RESPONSE_HEADER] = correlation_id
            return response
        finally:
            _correlation_id_ctx.reset(token)


class CorrelationContext:
    """
    Context manager for setting correlation ID in non-request contexts.

    Works inside coroutines too: the context variable is task-local.
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _correlation_id_ctx.reset(self._token)

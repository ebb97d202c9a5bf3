"""
Request logging middleware.

Binds the request ID into the structlog context so every ledger, batch
and confirmation event logged while serving the request carries it.
"""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.config import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

# Polled by orchestrators; logged at debug only
_QUIET_PATHS = ("/health", "/api/health", "/api/health/db")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one start and one completion event per request, with timing."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)

        quiet = request.url.path in _QUIET_PATHS
        start = time.perf_counter()
        (logger.debug if quiet else logger.info)(
            "request_started",
            client=request.client.host if request.client else "unknown",
        )

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            if response.status_code >= 400:
                log = logger.warning
            else:
                log = logger.debug if quiet else logger.info
            log("request_completed", status=response.status_code, duration_ms=round(duration_ms, 2))
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        finally:
            clear_request_context()

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response

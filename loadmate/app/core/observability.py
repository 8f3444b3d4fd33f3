"""
Request logging middleware.

Tags every request with a correlation id (taken from ``X-Correlation-ID`` or
generated), echoes it back with the processing time, and writes one log line
per request at a level matching the response status.
"""

import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("loadmate.requests")

CORRELATION_HEADER = "X-Correlation-ID"

# Polled by load balancers; logged at DEBUG only
QUIET_PATHS = {"/health"}


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        level = logging.DEBUG if request.url.path in QUIET_PATHS else _level_for(response.status_code)
        logger.log(
            level,
            "%s %s -> %d (%.1f ms) cid=%s ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            correlation_id,
            request.client.host if request.client else "unknown",
            extra={"correlation_id": correlation_id, "status_code": response.status_code},
        )
        return response

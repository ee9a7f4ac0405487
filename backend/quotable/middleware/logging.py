"""
So Quotable Backend — Access Log Middleware
============================================

What:  One log line per HTTP request on the "quotable.access" logger.
How:   Times the downstream call and logs method, path, status, duration,
       request id and client IP. The same fields also go into `extra` for
       any structured handler attached to the logger.
When:  After RequestIDMiddleware, so the id is already set.

Example line:

    POST /api/auth/sign-in 401 12.3ms [1a2b3c4d] from 10.0.0.7

What we log vs what we DON'T log:
    ✅ Log: method, path, status, duration, client IP, request ID
    ❌ Don't log: request bodies (passwords, tokens), the Authorization header
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from quotable.middleware.request_id import request_id_var

logger = logging.getLogger("quotable.access")

# Health checks hit every few seconds and would drown out real traffic
SKIPPED_PATHS = {"/health"}


def level_for_status(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, anything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request once, after the response is produced.

    Duration covers everything downstream: validation, database work,
    Cloudinary or Google calls, and serialization. Background email
    delivery runs after the response and is not included.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        # perf_counter: monotonic, unaffected by wall clock changes
        start_time = time.perf_counter()
        # request.client is None under some test transports
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        rid = request_id_var.get("")
        status = response.status_code

        # ── Emit ──────────────────────────────────────────────────────────
        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response

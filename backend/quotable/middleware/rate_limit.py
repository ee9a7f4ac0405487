"""
So Quotable Backend — Per-IP Rate Limiter
==========================================

What:  Sliding window limit on requests per client IP.
How:   Keeps each IP's request timestamps in process memory and drops the
       ones older than the window on every request.
When:  Outermost middleware, so rejected requests do no further work.

Algorithm: Sliding Window
    1. Drop the IP's timestamps older than `window` seconds
    2. If `max_requests` or more remain, answer 429
    3. Otherwise record the current timestamp and pass the request on

    Retry-After is the time until the oldest counted request leaves the
    window, rounded up to a whole second.

Limits:
    Per-process only: each uvicorn worker counts on its own, and a restart
    forgets every window. Behind a proxy the client IP is the proxy's.
    Sign-in throttling per account is separate (identity_service).
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from quotable.config import settings
from quotable.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

# Sweep idle IPs after this many admitted requests
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Configuration (from settings, overridable per instance for tests):
        rate_limit_requests: max requests per window
        rate_limit_window:   window length in seconds

    Response on rate limit:
        HTTP 429 with the standard error envelope
        ("error": "rate_limit_exceeded") and a Retry-After header.
    """

    # Health checks and API docs stay reachable for everyone
    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window = window or settings.rate_limit_window
        # IP → timestamps inside the current window, oldest first
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        # ── Sliding Window: drop expired timestamps ───────────────────────
        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        # ── Check limit ───────────────────────────────────────────────────
        if len(recent) >= self.max_requests:
            # recent[0] is the oldest counted request
            retry_after = int(recent[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                self.window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        # ── Record this request ───────────────────────────────────────────
        recent.append(now)

        # ── Periodic cleanup of inactive IPs ──────────────────────────────
        # Without it the dict keeps one entry for every IP ever seen
        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Removes IPs whose newest request is already outside the window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))

"""
So Quotable Backend — Request ID Middleware
============================================

What:  Tags every request with a short correlation id.
How:   Reuses a client-supplied X-Request-ID, otherwise takes 8 hex chars of
       a fresh uuid4. The id goes into a ContextVar, request.state and the
       response header.
When:  Runs inside the rate limiter and ahead of the access log. Route
       errors and the log line carry the id; a 429 from the rate limiter is
       answered before one is assigned.

Where the id shows up:
    - X-Request-ID response header
    - "request_id" field of route error envelopes (see main.py handlers)
    - the access log line from RequestLoggingMiddleware
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── Context Variable ──────────────────────────────────────────────────────
# Coroutine-local: concurrent requests on one event loop each see their own id.
# Read by the access log and the error handlers.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a correlation id to each request.

    Behavior:
        1. Use the client's X-Request-ID header when present (the frontend
           can then match its own error reports to server logs)
        2. Otherwise generate one from a uuid4
        3. Store it in request_id_var and request.state.request_id
        4. Echo it back in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # An empty header counts as absent
        # 8 hex chars are enough to correlate one request in the logs
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        # ContextVar for loggers and handlers; request.state for route code
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        # Echo so clients can quote it in bug reports
        response.headers["X-Request-ID"] = rid
        return response

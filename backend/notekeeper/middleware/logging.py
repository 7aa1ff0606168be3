"""
NoteKeeper Backend — Request Logging Middleware
=================================================

What:  One access-log line per HTTP request: method, path, status, duration,
       request ID, caller identity and client IP.
How:   Measures wall time around the downstream app and picks the log level
       from the status class (5xx ERROR, 4xx WARNING, otherwise INFO). The
       identity is whatever `require_identity` verified for this request;
       public routes and rejected tokens log "-".
When:  Inside RequestIDMiddleware, so the request ID is already known.

Never logged: request bodies (passwords, note content) and the
Authorization header or token.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notekeeper.middleware.request_id import request_id_var

logger = logging.getLogger("notekeeper.access")

ANONYMOUS = "-"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log keyed by request ID and caller identity."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Health probes are too frequent to be worth a line each
        if request.url.path == "/health":
            return await call_next(request)

        started = time.perf_counter()
        rid = request_id_var.get("")

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - started) * 1000
        status = response.status_code
        # request.state shares the scope with the route, so this is set
        # once require_identity has accepted a token
        user_id = getattr(request.state, "user_id", None)
        user = str(user_id) if user_id else ANONYMOUS
        client_ip = request.client.host if request.client else "unknown"

        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            "%s %s %d %.1fms [%s] user=%s from %s",
            request.method,
            request.url.path,
            status,
            elapsed_ms,
            rid,
            user,
            client_ip,
            extra={
                "request_id": rid,
                "user_id": user,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(elapsed_ms, 2),
            },
        )

        return response

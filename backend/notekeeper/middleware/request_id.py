"""
NoteKeeper Backend — Request ID Middleware
============================================

What:  Assigns a correlation ID to each incoming request and returns it in
       the `X-Request-ID` response header.
How:   Reuses a client-provided X-Request-ID or generates a short UUID,
       stores it in a ContextVar (for loggers and exception handlers) and in
       `request.state.request_id` (for route handlers).
When:  Outermost application middleware; runs before everything else.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. If the client sent X-Request-ID, use it
        2. Otherwise generate the first 8 characters of a UUID4
        3. Store in the ContextVar and on request.state
        4. Echo it back in the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response

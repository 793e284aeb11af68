"""
Parcel Server Backend: Request ID Middleware
=============================================

What:  Assigns each incoming request a short correlation ID and echoes it in
       the `X-Request-ID` response header.
Why:   A parcel listing, a payment record and a Stripe intent can all fail
       for the same user within seconds; the ID ties each error envelope
       to the log lines written while serving it.
How:   Reuses a client-supplied X-Request-ID if present, otherwise generates
       one; stores it in a ContextVar (for loggers and exception handlers)
       and in request.state (for route handlers).
Who:   Applied to every request via Starlette middleware.
When:  Outermost middleware, so access logging and every exception handler
       run after the ID is set.

Why Request IDs matter here:
    Every error response carries `request_id`. A user reporting "my payment
    failed" can quote it, and the matching lines are:
    - the access log entry (method, path, status, duration)
    - the handler's warning or error line, with the database or gateway detail

    Without it, payment failures are matched by timestamp and email,
    which is imprecise when one payer retries a checkout several times.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── Context Variable ──────────────────────────────────────────────────────
# What: Coroutine-local storage for the current request ID
# Why ContextVar: concurrent requests share one event-loop thread; each
# request's task gets its own copy of the value.
# Alternative: threading.local, which every request on the loop would share
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a correlation ID to each request.

    Behavior:
        1. Use the client's X-Request-ID header when it sends one
        2. Otherwise generate the first 8 hex chars of a UUID4
        3. Store it in request_id_var and request.state.request_id
        4. Echo it in the response's X-Request-ID header

    Why accept client-provided IDs:
        The frontend can tag a checkout flow (create intent, then record the
        payment) with one ID and find both requests in the logs.

    Why 8 characters:
        Short enough to read aloud from an error toast; collisions only
        matter within the same few minutes of logs.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

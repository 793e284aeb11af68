"""
Parcel Server Backend: Request Logging Middleware
==================================================

What:  One access-log line per HTTP request: method, path, status, duration,
       request ID and client IP.
Why:   Slow Stripe calls and failed payment writes show up first as 5xx or
       long durations; the access line is where an operator starts.
How:   Times the downstream call and logs on the `parcel_server.access`
       logger at a level chosen from the status code.
Who:   Applied to every request via Starlette middleware.
When:  Runs inside RequestIDMiddleware, so the request ID is available.

Log line:
    POST /payments 201 12.4ms [a1b2c3d4] from 192.168.1.100

    The same fields are attached as `extra` attributes (request_id, method,
    path, status, duration_ms, client_ip) for a structured formatter.

What we log vs what we DON'T log (privacy):
    Log: method, path, status, duration, IP, request ID
    Don't log: request bodies (emails, payment details), query strings
    (`?email=` on parcel and payment listings identifies the user)
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("parcel_server.access")

# Liveness and health checks polled every few seconds by load balancers
QUIET_PATHS = {"/", "/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs structured information about each HTTP request and response.

    Levels:
        5xx → ERROR, 4xx → WARNING, everything else → INFO

    Performance tracking:
        Duration runs from middleware entry to response return, so it
        includes validation, database queries and serialization.

        Typical durations:
        - GET /parcels?email=: 5-50ms (one indexed query)
        - POST /payments: 10-80ms (update and insert in one transaction)
        - POST /create-payment-intent: 300-1500ms (Stripe round trip dominates)

    Why not use uvicorn's access log:
        It has no request ID and no duration, and it prints query strings.
        Its level is raised to WARNING in setup_logging().
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response

"""
ReportDesk Backend: Request Logging Middleware
===============================================

What:  One access log line per HTTP request.
How:   Measures duration around call_next and logs method, path, status,
       duration, request ID, client IP and caller id.

Log level follows the status code:
    5xx → ERROR, 4xx → WARNING (includes 403 access denials), else INFO

Never logged: request bodies (report content and patient names are PHI).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from reportdesk.middleware.request_id import request_id_var

logger = logging.getLogger("reportdesk.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        # Probes hit this every few seconds
        if path == "/health":
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        # Set by the get_caller dependency once the identity is resolved
        caller = getattr(request.state, "caller", None)
        caller_id = caller.user_id if caller else "-"

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] caller=%s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            caller_id,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "caller_id": caller_id,
            },
        )

        return response

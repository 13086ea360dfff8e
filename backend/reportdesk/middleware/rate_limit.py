"""
ReportDesk Backend: Rate Limiting Middleware
=============================================

What:  Sliding window rate limiter keyed by caller.
How:   The key is the gateway's caller id header when present, otherwise the
       client IP, so users behind one proxy address get separate budgets.
       Each key holds a deque of request times; entries older than the
       window are popped from the left before counting.

Single-process only: each worker keeps its own counters.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from reportdesk.config import settings
from reportdesk.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-caller sliding window limiter (settings.rate_limit_*)."""

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Idle keys are swept once per this many admitted requests
    SWEEP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._hits: Dict[str, Deque[float]] = {}
        self._since_sweep = 0

    @staticmethod
    def client_key(request: Request) -> str:
        caller_id = request.headers.get(settings.identity_header, "").strip()
        if caller_id:
            return f"user:{caller_id}"
        return f"ip:{request.client.host if request.client else 'unknown'}"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        key = self.client_key(request)
        window = settings.rate_limit_window
        now = time.monotonic()

        hits = self._hits.setdefault(key, deque())
        while hits and hits[0] <= now - window:
            hits.popleft()

        if len(hits) >= settings.rate_limit_requests:
            retry_after = int(hits[0] + window - now) + 1
            logger.warning(
                "Rate limit exceeded for %s: %d requests in %ds window",
                key, len(hits), window,
            )
            # The app's exception handlers sit inside this middleware.
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        hits.append(now)

        self._since_sweep += 1
        if self._since_sweep >= self.SWEEP_EVERY:
            self._since_sweep = 0
            self._sweep(now - window)

        return await call_next(request)

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Dropped %d idle rate limit keys", len(idle))

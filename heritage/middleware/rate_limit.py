"""
Heritage Numérique Backend — Rate Limiting Middleware
======================================================

What:  Per-IP sliding window limiter (rate_limit_requests per
       rate_limit_window seconds).
How:   Keeps the timestamps of each IP's requests inside the window in
       memory; a request arriving when the window is full gets a 429 in the
       standard error envelope plus a Retry-After header.

Sliding Window:
    t ──────────────[ window ]────────── now
          dropped  │ counted │
    Counting the last N seconds avoids the double burst a fixed window
    allows at its boundary.

Single-process only: state is not shared between uvicorn workers.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from heritage.config import settings
from heritage.exceptions import RateLimitExceededError, error_envelope
from heritage.middleware.logging import client_ip

logger = logging.getLogger(__name__)

# Sweep idle IPs once every this many requests
CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, max_requests: Optional[int] = None, window_seconds: Optional[int] = None):
        super().__init__(app)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        ip = client_ip(request)
        now = time.time()
        window_start = now - self.window_seconds

        timestamps = self._requests[ip]
        while timestamps and timestamps[0] <= window_start:
            timestamps.popleft()

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window_seconds - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                ip,
                len(timestamps),
                self.window_seconds,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=error_envelope(
                    exc.status_code, exc.error_code, exc.message, request.url.path, exc.context
                ),
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive = [ip for ip, ts in self._requests.items() if not ts or ts[-1] <= window_start]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive))

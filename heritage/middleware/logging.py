"""
Heritage Numérique Backend — Request Logging Middleware
========================================================

What:  One access line per request on the `heritage.access` logger.
How:   Measures the time spent below this middleware and picks the level
       from the response status.

Line Format:
    POST /api/v1/families 201 12.4ms [ab12cd34] from 10.0.0.7

Level by status:
    5xx → ERROR     4xx → WARNING     otherwise → INFO

Request bodies and Authorization headers are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from heritage.middleware.request_id import request_id_var

logger = logging.getLogger("heritage.access")

SKIPPED_PATHS = {"/health"}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        rid = request_id_var.get("")
        ip = client_ip(request)
        logger.log(
            level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": ip,
            },
        )
        return response

"""
Heritage Numérique Backend — Request ID Middleware
===================================================

What:  Gives every request a correlation id and echoes it in X-Request-ID.
How:   Reuses the client's X-Request-ID when present, otherwise the first
       8 characters of a uuid4. The id lives in a ContextVar so loggers
       and the error envelope can read it without access to the request.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    return str(uuid.uuid4())[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        request_id_var.set(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response

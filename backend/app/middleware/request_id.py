"""
Blog Backend — Request ID Middleware
======================================

What:  Assigns a short correlation ID to each request and echoes it back.
Why:   Every log line and every error body for one request share the ID, so a
       client-reported error can be matched to the server log.
How:   A client-supplied X-Request-ID is reused only when it is short and
       made of log-safe characters; otherwise a fresh 8-hex-char ID is
       generated. The ID lives in a ContextVar (read by the access log and
       the exception handlers).
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Letters, digits, dot, underscore and dash; nothing that could forge a log line
_CLIENT_ID = re.compile(r"[A-Za-z0-9._-]{1,64}")


def resolve_request_id(client_value: Optional[str]) -> str:
    if client_value and _CLIENT_ID.fullmatch(client_value):
        return client_value
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid
        # Not reset afterwards: the catch-all 500 handler runs outside this
        # middleware and still reads it. Each request runs in its own task.
        request_id_var.set(rid)

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response

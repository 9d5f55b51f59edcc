"""
Blog Backend — Request Logging Middleware
===========================================

What:  One access log line per HTTP request, on the "blog.access" logger.
How:   Times the downstream handler, then logs

           GET /api/my-posts -> 200 in 4.2ms user=<uuid> rid=1f2e3d4c ip=10.0.0.7

       user is the id the auth guard attached to request.state, or "-" for
       anonymous requests. The level follows the status class:
       5xx → ERROR, 4xx → WARNING, everything else → INFO. A handler that
       raises past the exception handlers is logged as a 500 and re-raised.

Never logged: request bodies (passwords), uploaded files, and headers
(the Authorization header carries the bearer token).
"""

import logging
import time
from typing import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.middleware.request_id import request_id_var

logger = logging.getLogger("blog.access")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, skip_paths: Iterable[str] = ("/health",)):
        super().__init__(app)
        # Health checks run every few seconds and would drown real traffic
        self.skip_paths = frozenset(skip_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, started)
            raise

        self._log(request, response.status_code, started)
        return response

    def _log(self, request: Request, status: int, started: float) -> None:
        duration_ms = (time.perf_counter() - started) * 1000
        identity = getattr(request.state, "identity", None)
        user = str(identity.user_id) if identity is not None else "-"
        client_ip = request.client.host if request.client else "-"
        rid = request_id_var.get()

        logger.log(
            level_for_status(status),
            "%s %s -> %d in %.1fms user=%s rid=%s ip=%s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            user,
            rid,
            client_ip,
        )

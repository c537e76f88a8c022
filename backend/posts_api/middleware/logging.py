"""
Posts API — Request Logging Middleware
=======================================

What:  One access-log line per request: method, path, status, duration,
       request ID and client address.
How:   Times the downstream call and picks the level from the status class
       (5xx → ERROR, 4xx → WARNING, otherwise INFO). The same fields go into
       `extra` for structured handlers. An exception escaping the app is
       logged as a 500 before it propagates to the outer error handler.

Never logged: request bodies (passwords, post content) and the
Authorization header.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from posts_api.middleware.request_id import request_id_var

logger = logging.getLogger("posts_api.access")

# Probes hit these every few seconds
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request/response pair with its duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Rendered as 500 by the outermost error handler, after this layer
            _log_access(request, 500, start_time, unhandled=True)
            raise

        _log_access(request, response.status_code, start_time)
        return response


def _log_access(
    request: Request, status: int, start_time: float, unhandled: bool = False
) -> None:
    duration_ms = (time.perf_counter() - start_time) * 1000
    rid = request_id_var.get("")
    client_ip = request.client.host if request.client else "unknown"
    method = request.method
    path = request.url.path

    if status >= 500:
        log_level = logging.ERROR
    elif status >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    logger.log(
        log_level,
        "%s %s %d %.1fms [%s] from %s%s",
        method,
        path,
        status,
        duration_ms,
        rid,
        client_ip,
        " (unhandled exception)" if unhandled else "",
        extra={
            "request_id": rid,
            "method": method,
            "path": path,
            "status": status,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
            "unhandled": unhandled,
        },
    )

"""
PhotoMemo Backend: Access Log Middleware
========================================

One line per API request on the "photomemo.access" logger:

    PUT /api/posts/3f2a... 403 12.4ms [a1b2c3d4] auth=bearer from 10.0.0.7

Level follows the status class (5xx ERROR, 4xx WARNING, else INFO).

`auth` records how the caller presented a session token (bearer header,
`token` cookie, or anonymous). The token itself is never read or logged,
and neither are request bodies, which carry passwords on /api/auth.
The matched route template (`/api/posts/{post_id}`) goes into `extra`
so log pipelines can group requests per endpoint.

Liveness checks (`/`, `/health`) are not logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from photomemo.dependencies import TOKEN_COOKIE
from photomemo.middleware.request_id import request_id_var

logger = logging.getLogger("photomemo.access")

SKIPPED_PATHS = frozenset({"/", "/health"})


def auth_source(request: Request) -> str:
    if request.headers.get("authorization", "").lower().startswith("bearer "):
        return "bearer"
    if request.cookies.get(TOKEN_COOKIE):
        return "cookie"
    return "anonymous"


def status_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        route = request.scope.get("route")
        entry = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "route": getattr(route, "path", None),
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "auth": auth_source(request),
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            status_level(response.status_code),
            "%s %s %d %.1fms [%s] auth=%s from %s",
            entry["method"],
            entry["path"],
            entry["status"],
            elapsed_ms,
            entry["request_id"],
            entry["auth"],
            entry["client_ip"],
            extra=entry,
        )
        return response

"""
PhotoMemo Backend: Request ID Middleware
========================================

What:  Gives every request a short correlation ID and echoes it back in the
       X-Request-ID response header.
How:   A client-supplied X-Request-ID is reused when it is a plain token
       (letters, digits, '.', '_', '-', at most 64 chars); anything else is
       replaced with the first eight characters of a UUID4, since the ID is
       written verbatim into log lines and error bodies. The ID lives in a
       ContextVar so loggers and exception handlers can read it without
       access to the request.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return str(uuid.uuid4())[:8]


def pick_request_id(supplied: Optional[str]) -> str:
    if supplied and _SAFE_REQUEST_ID.match(supplied):
        return supplied
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = pick_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = rid

        request_id_var.set(rid)
        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = rid
        return response

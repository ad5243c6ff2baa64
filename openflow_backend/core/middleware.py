"""Request-context middleware feeding the structured logger."""

from __future__ import annotations

import secrets
import time
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging import get_logger, request_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Health probes are not access-logged
_UNLOGGED_PATHS = frozenset({"/health"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag every log line emitted while serving a request with its id."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or secrets.token_hex(8)
        token = request_context.set(
            {"request_id": request_id, "method": request.method, "path": request.url.path}
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
            if request.url.path not in _UNLOGGED_PATHS:
                log = logger.warning if response.status_code >= 500 else logger.info
                log(
                    f"{request.method} {request.url.path} {response.status_code}",
                    data={"duration_ms": round((time.perf_counter() - started) * 1000, 2)},
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_context.reset(token)

"""
Per-request context: correlation id and access logging.

An incoming X-Request-ID is reused when it looks like an opaque token;
anything else is replaced with a fresh UUID so clients can't inject
arbitrary text into the logs.
"""

import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from luna.logging_config import get_logger, request_id_var, user_id_var

logger = get_logger("luna.access")

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000

_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9._\-]{1,128}")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and _SAFE_REQUEST_ID.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and echo it on the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        rid_token = request_id_var.set(request_id)
        uid_token = user_id_var.set(None)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - start) * 1000, 1)
            response.headers[REQUEST_ID_HEADER] = request_id

            fields = {
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": elapsed_ms,
            }
            # bcrypt-bound routes land here under load
            if elapsed_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra=fields)
            else:
                logger.debug("Request handled", extra=fields)
            return response
        finally:
            user_id_var.reset(uid_token)
            request_id_var.reset(rid_token)

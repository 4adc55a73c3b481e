"""
Failure envelope and the exception handlers that render it.

Every error response has the shape
``{"success": false, "error": <message>, "code": <CODE>, ...}``.
"""

from http import HTTPStatus
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from luna.api.middleware.request_id import REQUEST_ID_HEADER
from luna.logging_config import get_logger

logger = get_logger(__name__)


class ApiError(HTTPException):
    """HTTPException carrying a machine-readable code."""

    def __init__(
        self,
        status_code: int,
        error: str,
        code: str,
        details: Optional[List[Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=error, headers=headers)
        self.error = error
        self.code = code
        self.details = details
        self.extra = extra or {}

    def to_content(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"success": False, "error": self.error, "code": self.code}
        if self.details is not None:
            content["details"] = self.details
        content.update(self.extra)
        return content


def status_code_name(status_code: int) -> str:
    """404 -> NOT_FOUND, 405 -> METHOD_NOT_ALLOWED; unknown codes -> HTTP_ERROR."""
    try:
        return HTTPStatus(status_code).name
    except ValueError:
        return "HTTP_ERROR"


def _envelope(
    request: Request,
    status_code: int,
    content: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    merged = dict(getattr(request.state, "rate_limit_headers", None) or {})
    merged.update(headers or {})
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        merged[REQUEST_ID_HEADER] = request_id
    return JSONResponse(status_code=status_code, content=content, headers=merged)


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return _envelope(request, exc.status_code, exc.to_content(), exc.headers)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework-raised errors such as unknown routes or wrong methods."""
    return _envelope(
        request,
        exc.status_code,
        {"success": False, "error": str(exc.detail), "code": status_code_name(exc.status_code)},
        getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client errors: 400 with per-field details."""
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return _envelope(
        request,
        HTTPStatus.BAD_REQUEST,
        {"success": False, "error": "Validation error", "code": "VALIDATION_ERROR", "details": details},
    )


def init_app(app: FastAPI, *, expose_errors: bool = False) -> None:
    """
    Register the envelope handlers on app.

    Args:
        app: Application to configure
        expose_errors: Put the exception text of unexpected failures in the
            response instead of a generic message (debug only)
    """

    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _envelope(
            request,
            HTTPStatus.INTERNAL_SERVER_ERROR,
            {
                "success": False,
                "error": str(exc) if expose_errors else "Internal server error",
                "code": "INTERNAL_ERROR",
            },
        )

    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected)

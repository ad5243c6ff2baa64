"""Error kinds raised by the OpenFlow core and their HTTP mapping."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .logging import get_logger, request_context

logger = get_logger(__name__)


class OpenFlowError(Exception):
    """Base exception for the OpenFlow core."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "E5000",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(OpenFlowError):
    """Board, grant, notification or user absent."""

    def __init__(self, message: str = "Resource not found", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, code="E4040", details=details)


class UnauthorizedError(OpenFlowError):
    """Authority check failed."""

    def __init__(self, message: str = "Access denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, code="E4030", details=details)


class ConflictError(OpenFlowError):
    """Duplicate grant on create."""

    def __init__(self, message: str = "Resource already exists", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, code="E4090", details=details)


class ValidationFailureError(OpenFlowError):
    """Caller passed an invalid access level, entity type or id."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict | None = None,
        code: str = "E4220",
    ):
        super().__init__(
            message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code=code,
            details=details,
        )


class OwnerAccessError(ValidationFailureError):
    """The board owner can never hold, or lose, an explicit grant."""

    def __init__(self, message: str = "Board owner cannot hold an access grant"):
        super().__init__(message, code="E4221")


def error_envelope(
    status_code: int,
    code: str,
    message: str,
    extra: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """The one JSON error shape every handler returns."""
    ctx = request_context.get()
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": message,
            "error": {
                "code": code,
                "message": message,
                "request_id": ctx.get("request_id") if ctx else None,
            },
            **(extra or {}),
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(OpenFlowError)
    async def openflow_error_handler(request: Request, exc: OpenFlowError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            data={"code": exc.code, "details": exc.details},
        )
        return error_envelope(exc.status_code, exc.code, exc.message, extra=exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Request validation failed", data={"errors": exc.errors()})
        return error_envelope(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "E4220",
            "Validation error",
            extra={"errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return error_envelope(exc.status_code, f"E{exc.status_code}0", str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}", exc_info=True)
        return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "E5000", "Internal server error")

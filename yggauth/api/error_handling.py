from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from yggauth.api.schemas import ErrorResponse
from yggauth.logging import get_logger
from yggauth.service.errors import ServiceError

logger = get_logger(__name__)

_STATUS_TO_ERROR = {
    400: "IllegalArgumentException",
    403: "ForbiddenOperationException",
    404: "NotFoundException",
    405: "MethodNotAllowedException",
    500: "InternalServerError",
}


def _error_kind_for_status(status_code: int) -> str:
    return _STATUS_TO_ERROR.get(status_code, "InternalServerError")


def _error_response(
    status_code: int,
    message: str,
    error: str | None = None,
    cause: str | None = None,
) -> JSONResponse:
    """Render the Yggdrasil ``{error, errorMessage, cause?}`` body."""
    body = ErrorResponse(
        error=error or _error_kind_for_status(status_code),
        error_message=message,
        cause=cause,
    )
    return JSONResponse(status_code=status_code, content=body.to_wire())


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "malformed request"


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers translating authority and request errors into protocol errors."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _describe_validation(exc)
        logger.warning(
            "request_validation_error",
            path=request.url.path,
            method=request.method,
            message=message,
        )
        return _error_response(400, message, error="IllegalArgumentException")

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(
            "service_error",
            path=request.url.path,
            method=request.method,
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
        )
        return _error_response(exc.status_code, exc.message, exc.error_code, exc.cause)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "http error"
        if exc.status_code >= 500:
            logger.error(
                "http_error",
                path=request.url.path,
                method=request.method,
                status_code=exc.status_code,
                message=message,
            )
        return _error_response(exc.status_code, message)

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception(
            "unhandled_exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return _error_response(500, "internal server error")

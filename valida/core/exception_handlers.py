"""Global exception handlers for consistent error responses.

This module registers exception handlers that convert all exceptions
to a unified JSON response format: ``{"error": <message>, "type": <error_type>}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from valida.core.exceptions import AppException, ConfigurationError

logger = logging.getLogger("valida.exception")


def _error_body(error_type: str, message: str) -> dict[str, str]:
    return {"error": message, "type": error_type}


def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle all AppException subclasses."""
    extra = {
        "method": request.method,
        "path": request.url.path,
        "status_code": exc.status_code,
        "error_type": exc.error_type,
    }
    if isinstance(exc, ConfigurationError):
        logger.critical(
            "Deployment misconfigured: %s", exc.message, extra=extra, exc_info=exc
        )
    elif exc.status_code >= 500:
        logger.error(
            "AppException: %s - %s", exc.error_type, exc.message, extra=extra
        )
    else:
        logger.info("AppException: %s - %s", exc.error_type, exc.message, extra=extra)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_type, exc.message),
    )


def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTPException raised by the framework (404 routes, 405 methods)."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _format_error(error: dict) -> str:
    field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
    return f"{field}: {error['msg']}" if field else error["msg"]


def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation errors as 400 with field-level messages."""
    message = "; ".join(_format_error(error) for error in exc.errors())
    return JSONResponse(
        status_code=400,
        content=_error_body("validation_error", message),
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors."""
    logger.error(
        "Unhandled exception: %s %s - %s",
        request.method,
        request.url.path,
        exc,
        extra={"method": request.method, "path": request.url.path, "status_code": 500},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

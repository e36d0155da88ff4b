"""
Error handling - application exceptions and the JSON error envelope.

Services and routes raise AppError subclasses; the handlers registered in
register_exception_handlers() turn them (and framework/unknown errors) into:

    {"status": "error", "message": "...", "data"?: ..., "errors"?: [...], "error"?: "..."}
"""

import logging
from typing import Any, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, data: Any = None, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.data = data
        self.errors = errors


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class BusinessRuleError(AppError):
    """Request was well formed but a domain rule rejected it."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


def error_body(message: str, data: Any = None, errors: Optional[List[str]] = None,
               error: Optional[str] = None) -> dict:
    """Build the error envelope, leaving out empty keys."""
    body = {"status": "error", "message": message}
    if data is not None:
        body["data"] = data
    if errors:
        body["errors"] = errors
    if error is not None:
        body["error"] = error
    return body


def _format_validation_error(err: dict) -> str:
    # ("body", "gpa") -> "gpa"
    location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or "request"
    return f"{field}: {err.get('msg', 'invalid value')}"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, data=exc.data, errors=exc.errors),
        headers=headers
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [_format_validation_error(err) for err in exc.errors()]
    logger.info("%s %s -> 400 validation error: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", errors=errors)
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Cannot {request.method} {request.url.path}"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None)
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", error=str(exc))
    )


def register_exception_handlers(app: FastAPI):
    """Attach every error handler to the app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

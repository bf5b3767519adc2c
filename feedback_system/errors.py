"""
Error taxonomy and the FastAPI handlers that render it.

Every error leaves the API as
{"success": false, "message": ..., "code": ..., "errors": [...]?}
so clients can tell a missing token from an expired one without parsing
the message text.
"""

import logging
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    message = "Internal server error."

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message, "code": self.code}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Validation failed."


class InvalidStatus(ValidationError):
    code = "INVALID_STATUS"
    message = "Invalid status. Valid statuses are: pending, approved, rejected."


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_ERROR"
    message = "Authentication failed."


class Unauthenticated(AuthError):
    code = "AUTH_REQUIRED"
    message = "Access denied. No token provided."


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials."


class AdminNotFound(AuthError):
    code = "ADMIN_NOT_FOUND"
    message = "Invalid token. Admin not found."


class InvalidToken(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "TOKEN_INVALID"
    message = "Invalid token. Access forbidden."


class TokenExpired(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "TOKEN_EXPIRED"
    message = "Token expired. Please log in again."


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Insufficient role for this action."


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found."


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Resource already exists."


class InternalError(AppError):
    pass


def _field_message(error: dict) -> str:
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location)
    msg = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
    return f"{field}: {msg}" if field else msg


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(errors=[_field_message(e) for e in exc.errors()])
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed."
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message, "code": f"HTTP_{exc.status_code}"},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content=InternalError().to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

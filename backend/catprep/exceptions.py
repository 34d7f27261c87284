"""
Error taxonomy and FastAPI exception handlers.

Services raise these exceptions; the handlers registered in ``main`` turn
them into a uniform JSON error body.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catprep.config import settings

logger = logging.getLogger(__name__)


class CatPrepException(Exception):
    """Base exception for the application."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationException(CatPrepException):
    """No identity, or an identity that could not be verified."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Could not validate credentials", details=None):
        super().__init__(message, details)


class AuthorizationException(CatPrepException):
    """Valid identity, but wrong owner or insufficient privilege."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Insufficient permissions", details=None):
        super().__init__(message, details)


class NotFoundException(CatPrepException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", details=None):
        super().__init__(f"{resource} not found", details)


class ConflictException(CatPrepException):
    """Operation is invalid for the resource's current state."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"


class InsufficientContentException(CatPrepException):
    """The question selector found nothing matching the request."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INSUFFICIENT_CONTENT"

    def __init__(self, message: str = "Not enough questions available for this selection", details=None):
        super().__init__(message, details)


class ValidationException(CatPrepException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", details=None):
        super().__init__(message, details)


class LockedQuestionException(ConflictException):
    """The question's own countdown has run out."""

    def __init__(self, index: int):
        super().__init__(f"Question {index + 1} is locked", {"index": index})


class AttemptExpiredException(ConflictException):
    """The attempt's countdown has already reached zero."""

    def __init__(self, message: str = "Time is up for this attempt"):
        super().__init__(message)


def create_error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    """Build the standard error body."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": error_code,
                "message": message,
                "details": details or {},
                "path": str(request.url.path),
                "method": request.method,
            }
        },
    )


async def catprep_exception_handler(request: Request, exc: CatPrepException) -> JSONResponse:
    logger.warning(
        f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}"
    )
    return create_error_response(
        request, exc.status_code, exc.error_code, exc.message, exc.details
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error_code = {
        status.HTTP_401_UNAUTHORIZED: AuthenticationException.error_code,
        status.HTTP_403_FORBIDDEN: AuthorizationException.error_code,
        status.HTTP_404_NOT_FOUND: NotFoundException.error_code,
        status.HTTP_409_CONFLICT: ConflictException.error_code,
    }.get(exc.status_code, "HTTP_ERROR")
    return create_error_response(request, exc.status_code, error_code, str(exc.detail))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return create_error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ValidationException.error_code,
        "Request validation failed",
        {"errors": errors},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = str(exc) if settings.debug else "An unexpected error occurred"
    return create_error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application."""
    app.add_exception_handler(CatPrepException, catprep_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

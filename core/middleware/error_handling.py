"""
Exception handlers with security-compliant error sanitization.
Maps pipeline failures onto HTTP statuses without leaking sensitive data.
"""

import logging
import re
from typing import Any, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError, OperationalError

from core.exceptions import (
    GenerationFailure,
    InvalidTransition,
    InvariantViolation,
    ParseFailure,
    DuplicateApplication,
    PersistenceFailure,
    PipelineError,
    RecordInUse,
    RecordNotFound,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),  # SSN
    re.compile(r'\b\d{16}\b'),  # Credit card
]

# Candidates see this instead of the parser's reason
PARSE_FAILURE_MESSAGE = "could not process resume, please retry"

# Most specific class first
PIPELINE_ERROR_STATUS: list[tuple[type[PipelineError], int]] = [
    (ParseFailure, 422),
    (GenerationFailure, status.HTTP_502_BAD_GATEWAY),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (InvariantViolation, 422),
    (StorageUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PersistenceFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
    (RecordNotFound, status.HTTP_404_NOT_FOUND),
    (RecordInUse, status.HTTP_409_CONFLICT),
    (DuplicateApplication, status.HTTP_409_CONFLICT),
]


def sanitize_error_message(message: Any) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = str(message)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def status_for(exc: PipelineError) -> int:
    for error_class, status_code in PIPELINE_ERROR_STATUS:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    """Build the ``{"error": {...}}`` envelope shared by every handler."""
    content = {
        "error": {
            "code": code,
            "message": message,
            "path": str(request.url.path),
            "method": request.method,
        }
    }
    if details is not None:
        content["error"]["details"] = details

    request_id = request.headers.get("x-request-id")
    if request_id:
        content["error"]["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=content)


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(PipelineError)
    async def pipeline_exception_handler(request: Request, exc: PipelineError):
        """Map pipeline failures onto their HTTP status."""
        status_code = status_for(exc)
        if isinstance(exc, ParseFailure):
            message = PARSE_FAILURE_MESSAGE
        else:
            message = sanitize_error_message(exc.message)

        log = logger.warning if status_code < 500 else logger.error
        log(
            f"{type(exc).__name__}: {request.method} {request.url.path} - "
            f"{sanitize_error_message(exc.message)}"
        )
        return error_response(request, status_code, exc.code, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return error_response(
            request, exc.status_code, "HTTP_EXCEPTION", sanitize_error_message(exc.detail)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        errors = []
        for error in exc.errors():
            error_dict = {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": sanitize_error_message(error["msg"]),
                "type": error["type"],
            }
            errors.append(error_dict)

        logger.warning(
            f"Validation error: {request.method} {request.url.path} - Errors: {errors}"
        )
        return error_response(
            request, 422, "VALIDATION_ERROR", "Request validation failed", details=errors
        )

    @app.exception_handler(PermissionError)
    async def permission_exception_handler(request: Request, exc: PermissionError):
        """Handle ownership checks failed in the service layer."""
        logger.warning(f"Permission error: {request.method} {request.url.path}")
        return error_response(
            request,
            status.HTTP_403_FORBIDDEN,
            "PERMISSION_DENIED",
            "You don't have permission to perform this action",
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        """Handle database errors that escaped the service layer."""
        logger.error(
            f"Database error: {request.method} {request.url.path} - {type(exc).__name__}",
            exc_info=True,
        )
        if isinstance(exc, OperationalError):
            return error_response(
                request,
                status.HTTP_503_SERVICE_UNAVAILABLE,
                PersistenceFailure.code,
                "Database service temporarily unavailable",
            )
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "DATABASE_ERROR",
            "A database error occurred",
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True
        )
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred",
        )

"""
Error handling for the HTTP surface.

Maps assessment engine exceptions to JSON error envelopes and strips anything
that looks like a credential or personal identifier from messages.
"""

import logging
import traceback
from typing import Any
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import re

from core.exceptions import (
    AssessmentError,
    ConfigurationError,
    PersistenceError,
    PhaseTransitionError,
)

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never reach a response or a log
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'),
]

# (status code, error code) per assessment exception type, most specific first
ASSESSMENT_ERROR_STATUS: list[tuple[type[AssessmentError], int, str]] = [
    (ConfigurationError, status.HTTP_404_NOT_FOUND, "CONFIGURATION_ERROR"),
    (PhaseTransitionError, status.HTTP_409_CONFLICT, "INVALID_PHASE_TRANSITION"),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE, "PERSISTENCE_ERROR"),
    (AssessmentError, status.HTTP_500_INTERNAL_SERVER_ERROR, "ASSESSMENT_ERROR"),
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """
    Extract safe error details without exposing sensitive information.

    Args:
        exc: The exception to extract details from
        include_details: Whether to include the traceback (development only)

    Returns:
        Dictionary with safe error details
    """
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }

    if include_details:
        details["traceback"] = traceback.format_exc()

    return details


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    content: dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "path": str(request.url.path),
            "method": request.method,
        }
    }
    if details is not None:
        content["error"]["details"] = details

    request_id = getattr(request.state, "request_id", None)
    if request_id:
        content["error"]["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=content)


def setup_error_handlers(app, debug: bool = False):
    """
    Set up exception handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Whether to include detailed error information
    """

    @app.exception_handler(AssessmentError)
    async def assessment_exception_handler(request: Request, exc: AssessmentError):
        """Handle engine errors."""
        for exc_type, status_code, error_code in ASSESSMENT_ERROR_STATUS:
            if isinstance(exc, exc_type):
                break

        message = sanitize_error_message(exc.message)
        if status_code >= 500:
            logger.error(
                f"{type(exc).__name__}: {request.method} {request.url.path} - {message}",
                exc_info=debug,
            )
        else:
            logger.warning(
                f"{type(exc).__name__}: {request.method} {request.url.path} - {message}"
            )

        details = get_safe_error_details(exc, include_details=True) if debug else None
        return _error_response(request, status_code, error_code, message, details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return _error_response(
            request,
            exc.status_code,
            "HTTP_EXCEPTION",
            sanitize_error_message(str(exc.detail)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle validation errors."""
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": sanitize_error_message(error["msg"]),
                "type": error["type"],
            })

        return _error_response(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "Request validation failed",
            errors,
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle invalid input raised below the schema layer."""
        message = sanitize_error_message(str(exc)) or "Invalid input provided"
        logger.warning(f"Value error: {request.method} {request.url.path} - {message}")
        return _error_response(
            request, status.HTTP_400_BAD_REQUEST, "INVALID_INPUT", message
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True
        )
        details = get_safe_error_details(exc, include_details=True) if debug else None
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred",
            details,
        )

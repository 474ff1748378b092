"""Centralized error handling with categorized, consistently formatted responses.

Domain exceptions from ``learnstreak.exceptions`` and infrastructure failures
are mapped here to HTTP responses of the shape
``{"error": {"category", "code", "detail", "suggestions"?, "metadata"?}}``.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError

from learnstreak.exceptions import (
    AlreadyCompletedError,
    ConcurrentUpdateError,
    InvalidTimestampError,
    PermissionDeniedError,
    ResourceNotFoundError,
)


logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes for constraint failures
_UNIQUE_VIOLATION = "23505"
_FOREIGN_KEY_VIOLATION = "23503"
_NOT_NULL_VIOLATION = "23502"
_CHECK_VIOLATION = "23514"


# === Error Categories ===


class ErrorCategory:
    """Error category constants."""

    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    DATABASE = "DATABASE_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class ErrorCode:
    """Specific error codes for better client handling."""

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"

    # Auth errors
    AUTH_REQUIRED = "AUTH_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Database errors
    DB_CONNECTION_FAILED = "DB_CONNECTION_FAILED"
    DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"
    DB_UNIQUE_VIOLATION = "DB_UNIQUE_VIOLATION"
    DB_FOREIGN_KEY_VIOLATION = "DB_FOREIGN_KEY_VIOLATION"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"

    # Internal errors
    INTERNAL = "INTERNAL_ERROR"


# === Error Response Formatting ===


def format_error_response(
    category: str,
    code: str,
    detail: str,
    status_code: int,
    suggestions: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Format a consistent error response."""
    content: dict[str, Any] = {
        "error": {
            "category": category,
            "code": code,
            "detail": detail,
        }
    }

    if suggestions:
        content["error"]["suggestions"] = suggestions

    if metadata:
        content["error"]["metadata"] = metadata

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def handle_not_found_errors(_request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    return format_error_response(
        category=ErrorCategory.RESOURCE_NOT_FOUND,
        code=ErrorCode.NOT_FOUND,
        detail=str(exc),
        status_code=status.HTTP_404_NOT_FOUND,
        suggestions=["The requested resource does not exist"],
        metadata={"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


async def handle_already_completed_errors(request: Request, exc: AlreadyCompletedError) -> JSONResponse:
    """Report a repeated completion together with the unchanged state."""
    logger.info("Already completed on %s %s: %s", request.method, request.url.path, exc)
    metadata: dict[str, Any] = {"video_id": str(exc.video_id)}
    if exc.progress is not None:
        metadata["progress"] = exc.progress
    if exc.offensive is not None:
        metadata["offensive"] = exc.offensive

    return format_error_response(
        category=ErrorCategory.CONFLICT,
        code=ErrorCode.ALREADY_COMPLETED,
        detail=str(exc),
        status_code=status.HTTP_409_CONFLICT,
        metadata=metadata,
    )


async def handle_invalid_timestamp_errors(request: Request, exc: InvalidTimestampError) -> JSONResponse:
    logger.info("Invalid timestamp on %s %s: %s", request.method, request.url.path, exc)
    return format_error_response(
        category=ErrorCategory.VALIDATION,
        code=ErrorCode.INVALID_TIMESTAMP,
        detail=str(exc),
        status_code=422,
        suggestions=["Use a timestamp that is not in the future and not before the last counted day"],
    )


async def handle_validation_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle validation errors from Pydantic and custom validators."""
    logger.info("Validation error on %s %s", request.method, request.url.path, extra={"error": str(exc)})

    if isinstance(exc, PydanticValidationError | RequestValidationError):
        errors = []
        for error in exc.errors():
            field = " -> ".join(str(loc) for loc in error["loc"])
            errors.append({"field": field, "message": error["msg"], "type": error["type"]})

        return format_error_response(
            category=ErrorCategory.VALIDATION,
            code=ErrorCode.INVALID_INPUT,
            detail="Invalid input data",
            status_code=422,
            metadata={"errors": errors},
        )
    # Custom validation error
    return format_error_response(
        category=ErrorCategory.VALIDATION,
        code=ErrorCode.INVALID_INPUT,
        detail=str(exc),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def handle_authentication_errors(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(
        "Authentication failed for %s %s: %s",
        request.method,
        request.url.path,
        exc.detail,
        extra={"client_host": request.client.host if request.client else "unknown"},
    )
    return format_error_response(
        category=ErrorCategory.AUTHENTICATION,
        code=ErrorCode.AUTH_REQUIRED,
        detail=str(exc.detail),
        status_code=exc.status_code,
        headers=exc.headers,
    )


async def handle_permission_errors(_request: Request, exc: PermissionDeniedError) -> JSONResponse:
    return format_error_response(
        category=ErrorCategory.AUTHORIZATION,
        code=ErrorCode.PERMISSION_DENIED,
        detail=str(exc),
        status_code=status.HTTP_403_FORBIDDEN,
    )


async def handle_concurrent_update_errors(request: Request, exc: ConcurrentUpdateError) -> JSONResponse:
    logger.warning("Concurrent update gave up on %s %s: %s", request.method, request.url.path, exc)
    return format_error_response(
        category=ErrorCategory.CONFLICT,
        code=ErrorCode.CONCURRENT_UPDATE,
        detail=str(exc),
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        suggestions=["Please retry the request"],
    )


def _sqlstate(exc: Exception) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


async def handle_database_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle database-related errors."""
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        extra={"error_type": type(exc).__name__},
        exc_info=(type(exc), exc, exc.__traceback__),
    )

    sqlstate = _sqlstate(exc)

    if isinstance(exc, IntegrityError):
        if sqlstate == _UNIQUE_VIOLATION or "unique" in str(exc).lower():
            return format_error_response(
                category=ErrorCategory.DATABASE,
                code=ErrorCode.DB_UNIQUE_VIOLATION,
                detail="This resource already exists",
                status_code=status.HTTP_409_CONFLICT,
                suggestions=["Try using a different identifier"],
            )

        if sqlstate == _FOREIGN_KEY_VIOLATION or "foreign key" in str(exc).lower():
            return format_error_response(
                category=ErrorCategory.DATABASE,
                code=ErrorCode.DB_FOREIGN_KEY_VIOLATION,
                detail="Referenced resource does not exist",
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        if sqlstate in (_NOT_NULL_VIOLATION, _CHECK_VIOLATION):
            return format_error_response(
                category=ErrorCategory.DATABASE,
                code=ErrorCode.DB_CONSTRAINT_VIOLATION,
                detail="Required data is missing or invalid",
                status_code=status.HTTP_400_BAD_REQUEST,
            )

    if isinstance(exc, OperationalError):
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_CONNECTION_FAILED,
            detail="Database connection error",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            suggestions=["Please try again later"],
        )

    # Generic database error
    return format_error_response(
        category=ErrorCategory.DATABASE,
        code=ErrorCode.INTERNAL,
        detail="A database error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# === Utility Functions ===


def log_error_context(request: Request, exc: Exception, error_id: UUID | None = None) -> None:
    """Log comprehensive error context for debugging."""
    context = {
        "error_id": str(error_id) if error_id else None,
        "method": request.method,
        "path": request.url.path,
        "query_params": dict(request.query_params),
        "client_host": request.client.host if request.client else "unknown",
        "user_id": str(getattr(request.state, "user_id", None)),
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    safe_headers = {
        k: v for k, v in request.headers.items() if k.lower() not in ["authorization", "cookie", "x-api-key"]
    }
    context["headers"] = safe_headers

    logger.error("Request failed", extra=context, exc_info=exc)

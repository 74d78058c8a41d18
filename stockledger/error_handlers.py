"""Custom error handlers and exceptions for the application."""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError

from .logging_config import get_logger

logger = get_logger("error_handlers")


class AppException(Exception):
    """Base exception for application-specific errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class Unauthenticated(AppException):
    """Raised when the caller has no valid credentials."""
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(AppException):
    """Raised when a resource exists but belongs to someone else."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppException):
    """Raised when a requested resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        details = {"resource": resource}
        if identifier is not None:
            message = f"{resource} with identifier '{identifier}' not found"
            details["identifier"] = str(identifier)
        super().__init__(message, details)


class ValidationFailed(AppException):
    """Raised when a business validation rule fails."""
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStock(AppException):
    """Raised when an outbound movement exceeds the available stock."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, available, requested):
        super().__init__(
            message=f"Insufficient stock. Available: {available}, requested: {requested}",
            details={"available": float(available), "requested": float(requested)}
        )


class Conflict(AppException):
    """Raised when attempting to create a duplicate resource."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            details={"resource": resource, "field": field, "value": value}
        )


async def app_exception_handler(request: Request, exc: AppException):
    """Handler for custom application exceptions."""
    logger.info(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}"
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details,
            "path": request.url.path
        },
        headers={"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handler for request validation errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"validation_errors": errors}
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Validation failed",
            "validation_errors": errors,
            "path": request.url.path
        }
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP exception handler with logging"""
    logger.warning(
        f"[HTTP_ERROR] {request.method} {request.url.path} - "
        f"Status: {exc.status_code} - Detail: {exc.detail}"
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail if isinstance(exc.detail, str) else "HTTP error",
            "details": {},
            "path": request.url.path
        },
        headers=getattr(exc, "headers", None)
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handler for SQLAlchemy database errors."""
    logger.error(
        f"Database error on {request.method} {request.url.path}: {exc}",
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database error occurred",
            "details": {},
            "path": request.url.path
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handler for unexpected exceptions."""
    logger.critical(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "details": {},
            "path": request.url.path
        }
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

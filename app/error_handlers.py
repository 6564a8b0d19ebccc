"""Custom error handlers and exceptions for the application."""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import traceback
from typing import Union
import uuid

from .logging_config import get_logger

logger = get_logger("error_handlers")
integrity_logger = get_logger("integrity")


class AppException(Exception):
    """Base exception for application-specific errors."""

    code = "application_error"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppException):
    """Raised when a requested resource is not found."""

    code = "not_found"

    def __init__(self, resource: str, identifier: Union[uuid.UUID, str]):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class DuplicateResourceError(AppException):
    """Raised when attempting to create a duplicate resource."""

    code = "duplicate"

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            message=f"{resource} with {field} '{value}' already exists",
            status_code=409,
            details={"resource": resource, "field": field, "value": value}
        )


class ResourceInUseError(AppException):
    """Raised when a record cannot be deleted because others still reference it."""

    code = "resource_in_use"

    def __init__(self, resource: str, identifier: Union[uuid.UUID, str], references: dict):
        super().__init__(
            message=f"{resource} '{identifier}' is still referenced and cannot be deleted",
            status_code=409,
            details={"resource": resource, "identifier": str(identifier), "references": references}
        )


class ValidationError(AppException):
    """Raised when data validation fails. ``errors`` maps field name to message."""

    code = "validation_error"

    def __init__(self, message: str, errors: dict = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"validation_errors": errors or {}}
        )


class ForbiddenError(AppException):
    """Raised when the caller lacks the privilege for an action."""

    code = "forbidden"

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message=message, status_code=403)


class CannotModifySelfError(ForbiddenError):
    """Raised when a privileged caller targets their own account."""

    code = "cannot_modify_self"

    def __init__(self, message: str = "You cannot modify your own account through this path"):
        super().__init__(message=message)


class InvalidParentError(AppException):
    """Raised when a category parent assignment is self-referential, unknown or cyclic."""

    code = "invalid_parent"

    def __init__(self, message: str, parent_id: Union[uuid.UUID, str, None] = None):
        super().__init__(
            message=message,
            status_code=400,
            details={"parent_id": str(parent_id) if parent_id else None}
        )


class MaxDepthExceededError(AppException):
    """Raised when a category assignment would exceed the hierarchy depth bound."""

    code = "max_depth_exceeded"

    def __init__(self, message: str, max_depth: int):
        super().__init__(
            message=message,
            status_code=400,
            details={"max_depth": max_depth}
        )


class TreeIntegrityError(AppException):
    """Raised when stored category data violates the tree invariants (cycles, dangling parents)."""

    code = "integrity_error"

    def __init__(self, message: str, category_id: Union[uuid.UUID, str, None] = None):
        super().__init__(
            message=message,
            status_code=500,
            details={"category_id": str(category_id) if category_id else None}
        )


async def app_exception_handler(request: Request, exc: AppException):
    """Handler for custom application exceptions."""
    if isinstance(exc, TreeIntegrityError):
        integrity_logger.critical(
            f"Category tree integrity violated: {exc.message}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "details": exc.details
            }
        )
    elif exc.status_code >= 500:
        logger.error(
            f"Application error: {exc.message}",
            extra={
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method,
                "details": exc.details
            }
        )
    else:
        logger.info(
            f"Request rejected ({exc.code}): {exc.message}",
            extra={
                "status_code": exc.status_code,
                "path": request.url.path,
                "method": request.method
            }
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "code": exc.code,
            "details": exc.details,
            "path": request.url.path
        }
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
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation failed",
            "code": ValidationError.code,
            "validation_errors": errors,
            "path": request.url.path
        }
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handler for SQLAlchemy database errors."""
    error_msg = "Database error occurred"

    if isinstance(exc, IntegrityError):
        error_msg = "Data integrity constraint violated"
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        f"Database error: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_msg,
            "code": "database_error",
            "path": request.url.path
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handler for unexpected exceptions."""
    logger.critical(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc()
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please contact support if the issue persists.",
            "path": request.url.path
        }
    )

"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers. Every failure
leaves the API as ``{"error_code", "message", "details"}``; unexpected errors
additionally carry a ``stack`` field outside production.
"""

import logging
import traceback
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict
from loadmate.app.core.config import settings

logger = logging.getLogger("loadmate.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class BadRequestError(AppException):
    """Raised when the request is well-formed but semantically invalid."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_BAD_REQUEST_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class StateConflictError(AppException):
    """Raised when a booking transition is not allowed from its current state."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_STATE_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class NotAuthorizedError(AppException):
    """Raised when the caller does not control the booking or vehicle it targets."""

    def __init__(self, message: str = "Not authorized to access this resource", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_002",
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class TokenRevokedError(AppException):
    """Raised when token has been revoked."""

    def __init__(self):
        super().__init__(
            message="Token has been revoked",
            error_code="ERR_AUTH_002",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class ServiceUnavailableError(AppException):
    """Raised when an optional integration is not configured."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="ERR_UNAVAILABLE_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": jsonable_encoder(exc.details)
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    errors = exc.errors()
    message = "Validation error"
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"Validation error: {location} {errors[0].get('msg', '')}".strip()

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_code": "ERR_VALIDATION",
            "message": message,
            "details": {
                "errors": jsonable_encoder(errors)
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    content = {
        "error_code": "ERR_INTERNAL_SERVER",
        "message": "An internal server error occurred",
        "details": {}
    }
    if not settings.is_production:
        content["message"] = str(exc) or content["message"]
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content
    )

# src/errors.py
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTPException with a stable machine-readable code."""
    status_code_default = status.HTTP_400_BAD_REQUEST
    code_default = "error"
    message_default = "Request failed"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, headers: Optional[dict] = None):
        self.code = code or self.code_default
        super().__init__(
            status_code=self.status_code_default,
            detail=message or self.message_default,
            headers=headers,
        )


class ValidationFailedError(ApiError):
    code_default = "validation_error"
    message_default = "Invalid input"


class ConflictError(ApiError):
    code_default = "conflict"
    message_default = "Resource already exists"


class SelfDeleteError(ApiError):
    code_default = "self_delete"
    message_default = "You cannot delete your own account"


class NotFoundError(ApiError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code_default = "not_found"
    message_default = "Resource not found"


class UnauthenticatedError(ApiError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code_default = "not_authenticated"
    message_default = "Not authenticated"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message, code, headers={"WWW-Authenticate": "Bearer"})


class OwnershipError(ApiError):
    """Caller is neither the resource author nor an admin."""
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code_default = "not_owner"
    message_default = "Not authorized to modify this resource"


class PermissionDeniedError(ApiError):
    """Caller lacks a permission token."""
    status_code_default = status.HTTP_403_FORBIDDEN
    code_default = "missing_permission"

    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(f"User does not have permission: {permission}")


class RoleNotAllowedError(ApiError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code_default = "role_not_allowed"
    message_default = "User role is not authorized to access this route"


def _failure(status_code: int, message: str, code: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "code": code},
        headers=headers,
    )


async def api_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = getattr(exc, "code", None) or f"http_{exc.status_code}"
    return _failure(exc.status_code, str(exc.detail), code, getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid input"))
    return _failure(status.HTTP_400_BAD_REQUEST, message, ValidationFailedError.code_default)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error", "internal_error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

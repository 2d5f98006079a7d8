"""
Global exception handler for the Medicine Cabinet API.
Provides centralized error handling for all API exceptions.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from .exceptions import (
    DrugNotFoundException,
    InvalidCredentialsException,
    NotificationException,
    RepositoryException,
    UserAlreadyExistsException,
    UserNotFoundException,
    ValidationException
)
from .logger import get_logger

logger = get_logger(__name__)


def _error(request: Request, status_code: int, error: str, message: str, **extra) -> JSONResponse:
    if status_code >= 500:
        logger.error("%s %s -> %d %s: %s", request.method, request.url.path, status_code, error, message)
    else:
        logger.warning("%s %s -> %d %s: %s", request.method, request.url.path, status_code, error, message)
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, **extra}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""

    @app.exception_handler(ValidationException)
    async def handle_validation_error(request: Request, exc: ValidationException):
        return _error(request, 400, "Validation Error", exc.message, errors=exc.errors)

    @app.exception_handler(DrugNotFoundException)
    async def handle_drug_not_found(request: Request, exc: DrugNotFoundException):
        return _error(request, 404, "Not Found", exc.message)

    @app.exception_handler(UserNotFoundException)
    async def handle_user_not_found(request: Request, exc: UserNotFoundException):
        return _error(request, 404, "Not Found", exc.message)

    @app.exception_handler(UserAlreadyExistsException)
    async def handle_user_exists(request: Request, exc: UserAlreadyExistsException):
        return _error(request, 409, "Conflict", exc.message)

    @app.exception_handler(InvalidCredentialsException)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsException):
        return _error(request, 401, "Unauthorized", exc.message)

    @app.exception_handler(NotificationException)
    async def handle_notification_error(request: Request, exc: NotificationException):
        return _error(request, 502, "Notification Failed", exc.message)

    @app.exception_handler(RepositoryException)
    async def handle_repository_error(request: Request, exc: RepositoryException):
        return _error(request, 500, "Database Error", exc.message)

    @app.exception_handler(Exception)
    async def handle_generic_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "message": "An unexpected error occurred"}
        )

"""
Global Error Handling Middleware

Maps Herald exceptions onto HTTP status codes with one JSON error shape.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from exception import CollaboratorError, InputValidationError, NotFoundError

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message, **extra})


def add_error_handlers(app: FastAPI):
    """
    Register error handlers for the FastAPI application.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        errors = []
        for error in exc.errors():
            errors.append(
                {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"], "type": error["type"]}
            )

        logger.warning(f"Validation error on {request.url.path}: {errors}")
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "Request validation failed", errors=errors)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.info(f"Not found on {request.url.path}: {exc}")
        return _error(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(InputValidationError)
    async def input_validation_handler(request: Request, exc: InputValidationError):
        logger.warning(f"Invalid input on {request.url.path}: {exc}")
        return _error(status.HTTP_400_BAD_REQUEST, str(exc), field=exc.field)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle value-related errors."""
        logger.error(f"ValueError on {request.url.path}: {str(exc)}")
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(CollaboratorError)
    async def collaborator_error_handler(request: Request, exc: CollaboratorError):
        logger.error(f"Collaborator failure on {request.url.path} ({exc.operation}): {exc}")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(request: Request, exc: RuntimeError):
        logger.error(f"Service not ready on {request.url.path}: {exc}")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors."""
        logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)

        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            detail=str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
        )

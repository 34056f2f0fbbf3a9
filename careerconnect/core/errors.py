"""
Service errors.

Services raise these; `register_error_handlers` turns them into JSON
responses of the form {"detail": "...", "success": false}.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from careerconnect.core.logging import get_logger

logger = get_logger(__name__)


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(ServiceError):
    status_code = 400


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class StorageError(ServiceError):
    status_code = 502


class QueryError(ServiceError):
    """Both the primary and the fallback query failed."""
    status_code = 503


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.warning(
        "service_error",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "success": False},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)

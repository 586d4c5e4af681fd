"""
Typed failures raised by the import pipeline, the RSVP lifecycle and the
host-side services.

Services raise these; the handlers registered by ``register_exception_handlers``
turn them into the standard error envelope. None of them is retried, they all
describe caller or input problems. ``NotFoundError`` is used for both
"missing" and "not yours" so that existence never leaks to non-owners.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request

from app.utils.responses import error_response

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for application errors"""

    status_code: int = 500
    error_code: str = "internal_error"
    message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None) -> None:
        self.message = message or self.__class__.message
        self.details = details
        super().__init__(self.message)


class ParseError(AppError):
    status_code = 400
    error_code = "parse_error"
    message = "Could not parse file. Make sure it is a valid .xlsx, .xls or .csv"


class EmptyInputError(AppError):
    status_code = 400
    error_code = "empty_input"
    message = "The file is empty"


class NoValidRowsError(AppError):
    status_code = 400
    error_code = "no_valid_rows"
    message = "No valid guests found. Make sure your file has a name column"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"
    message = "Resource not found"

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")


class InvalidTokenError(AppError):
    """Unknown token, or an event that is not publicly visible yet.

    Both cases must produce exactly the same response.
    """

    status_code = 404
    error_code = "invalid_token"
    message = "Invalid invitation link"

    def __init__(self) -> None:
        super().__init__()


class ValidationError(AppError):
    status_code = 422
    error_code = "validation_error"
    message = "Validation failed"


class PersistenceError(AppError):
    status_code = 500
    error_code = "persistence_error"
    message = "The data store rejected the write"


async def _app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        status_code=exc.status_code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the AppError handler on the application"""
    app.add_exception_handler(AppError, _app_error_handler)


"""
Error taxonomy and the HTTP boundary that renders it.

Services raise these exceptions; the handlers registered by
``register_exception_handlers`` turn them into ``{"message": ...}`` JSON
responses with the matching status code.  Anything that is not an
``AppError`` becomes a generic 500.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidCredentialsError(AppError):
    status_code = 401
    default_message = "Wrong credentials provided"


class InvalidTokenError(AppError):
    status_code = 403
    default_message = "Invalid token"


class Forbidden(AppError):
    status_code = 403
    default_message = "Access denied"


class UniqueConstraintViolation(AppError):
    status_code = 409
    default_message = "Unique constraint failed"


class PayloadTooLargeError(AppError):
    status_code = 413
    default_message = "File too large"


class UnexpectedError(AppError):
    status_code = 500
    default_message = "Server Error"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.info("[%d]: %s (%s %s)", exc.status_code, exc.message, request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[500]: unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": UnexpectedError.default_message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

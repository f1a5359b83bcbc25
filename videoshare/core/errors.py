"""
Error taxonomy for the upload flow. Every error carries the HTTP status it maps to
and a public message; main.py renders them as {"error": public_message}.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class VideoShareError(Exception):
    """Base class. public_message is safe to show to the user."""

    status_code = 500

    def __init__(self, message: str, public_message: str | None = None):
        self.message = message
        self.public_message = public_message or message
        super().__init__(message)


class ConfigurationError(VideoShareError):
    """A required secret is missing. Fails the request, never the process."""

    status_code = 500


class ValidationError(VideoShareError):
    status_code = 400


class AuthorizationError(VideoShareError):
    """Could not obtain an upload grant."""

    status_code = 502


class UploadError(VideoShareError):
    """CDN transfer failed. Never retried automatically."""

    status_code = 502

    def __init__(self, message: str, cause: BaseException | None = None, retryable: bool = False):
        self.cause = cause
        self.retryable = retryable
        super().__init__(message)


class PersistenceError(VideoShareError):
    """Datastore unreachable or a write failed. retryable marks connection drops and timeouts."""

    status_code = 500

    def __init__(
        self,
        message: str,
        public_message: str = "Something went wrong. Please try again.",
        retryable: bool = False,
    ):
        self.retryable = retryable
        super().__init__(message, public_message)


class BusyError(VideoShareError):
    """A submission is already in flight on this upload client."""

    status_code = 409


async def videoshare_error_handler(request: Request, exc: VideoShareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        field = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        message = f"Invalid value for {field}" if field else "Invalid request body"
    else:
        message = "Invalid request body"
    return JSONResponse(status_code=400, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(VideoShareError, videoshare_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

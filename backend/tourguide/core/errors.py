"""
Error taxonomy and FastAPI exception handlers
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TourGuideError(Exception):
    """Base error; subclasses carry the HTTP status they map to."""

    status_code = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
        self.message = message


class ValidationError(TourGuideError):
    status_code = 400


class AuthenticationError(TourGuideError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class NotFoundError(TourGuideError):
    status_code = 404


class MethodNotAllowedError(TourGuideError):
    status_code = 405


class StorageError(TourGuideError):
    """Document store unreachable or a query failed."""

    status_code = 500


class AssistantUnavailableError(TourGuideError):
    status_code = 500


class EnrichmentLookupError(Exception):
    """
    Wikimedia lookup failed (transport error, bad status, malformed payload).
    Always absorbed by the enrichment service; never reaches a client.
    """


async def tour_guide_error_handler(request: Request, exc: TourGuideError):
    if exc.status_code >= 500:
        logger.error(f"[{request.method} {request.url.path}] {type(exc).__name__}: {exc.message}")
        # Storage details stay in the logs
        message = "Server error" if isinstance(exc, StorageError) else exc.message
    else:
        message = exc.message
    return JSONResponse(status_code=exc.status_code, content={"message": message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid data", "errors": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"[{request.method} {request.url.path}] Unhandled error: {exc}")
    return JSONResponse(status_code=500, content={"message": "Server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TourGuideError, tour_guide_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

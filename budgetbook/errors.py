"""API exceptions and the FastAPI handlers that render them as envelopes."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .envelope import request_caption, respond_error

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Raised by route handlers to answer with a failure envelope."""

    def __init__(self, status_code: int, message: Optional[str] = None, cause: Optional[BaseException] = None) -> None:
        super().__init__(message or (str(cause) if cause else ""))
        self.status_code = status_code
        self.message = message
        self.cause = cause


class MissingPayloadData(ApiError):
    """Raised when declared payload keys are absent from the request body."""

    def __init__(self, missing: List[str]) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, f"Missing Data: {', '.join(missing)}.")
        self.missing = missing


def describe_validation_error(exc: ValidationError | RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request data."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg', 'invalid value')}" if location else str(first.get("msg", "invalid value"))


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.cause is not None:
        logger.warning("%s %s failed: %r", request.method, request.url.path, exc.cause)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return respond_error(exc.status_code, exc.cause, exc.message, caption=request_caption(request))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_validation_error(exc)
    logger.info("%s %s rejected (400): %s", request.method, request.url.path, message)
    return respond_error(status.HTTP_400_BAD_REQUEST, message=message, caption=request_caption(request))


async def fallback_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # ORM errors carry SQL and bound parameters in str(exc).
    message = None if isinstance(exc, SQLAlchemyError) else str(exc) or None
    return respond_error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, message, caption=request_caption(request))


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, fallback_handler)

#!/usr/bin/env python3

"""
Error responses shared by the review sentiment routers.

All failures are returned as {"error": ..., "details": ...} bodies.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.review_sentiment.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    ReviewSentimentError,
    StorageError,
    UpstreamFetchError,
)

logger = logging.getLogger(__name__)

API_KEY_MISSING = "API key is not configured"


def error_response(status_code: int, error: str, details: Optional[Any] = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def response_for_exception(exc: Exception, action: str) -> JSONResponse:
    """
    Map a pipeline exception to an HTTP error response.
    
    Args:
        exc: The exception raised by the service
        action: Short description used in the error message (e.g. "fetch place details")
    """
    if isinstance(exc, UpstreamFetchError):
        logger.error(f"Failed to {action}: {exc} (status={exc.status_code})")
        details = exc.body if exc.body is not None else str(exc)
        return error_response(exc.status_code or 500, f"Failed to {action}", details)
    if isinstance(exc, ConfigurationError):
        logger.error(f"Failed to {action}: {exc}")
        return error_response(500, API_KEY_MISSING)
    if isinstance(exc, MalformedResponseError):
        logger.error(f"Failed to {action}: {exc}")
        return error_response(502, f"Failed to {action}", str(exc))
    if isinstance(exc, StorageError):
        logger.error(f"Failed to {action}: {exc}")
        return error_response(500, f"Failed to {action}", str(exc))
    if isinstance(exc, ValueError):
        return error_response(400, str(exc))
    if isinstance(exc, ReviewSentimentError):
        logger.error(f"Failed to {action}: {exc}")
        return error_response(500, f"Failed to {action}", str(exc))
    raise exc


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return error_response(400, "Invalid request", jsonable_errors(exc))


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


def register_error_handlers(app: FastAPI) -> None:
    """Return request validation failures as 400 with the standard error body."""
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)

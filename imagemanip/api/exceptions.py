"""
Exception handling for the HTTP API.

Maps the imagemanip error families onto status codes:
- InputValidationError -> 400
- ResourceStateError -> 409
- BackendFailure -> 500
"""

import functools
import logging
from typing import Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from imagemanip.core.exceptions import (
    ImageManipulationError,
    InputValidationError,
    ResourceStateError,
)

logger = logging.getLogger(__name__)


def status_code_for(exc: ImageManipulationError) -> int:
    if isinstance(exc, InputValidationError):
        return 400
    if isinstance(exc, ResourceStateError):
        return 409
    return 500


def error_content(exc: ImageManipulationError) -> dict:
    content = {"detail": exc.message, "error_type": exc.error_type, "error": type(exc).__name__}
    if exc.details:
        content["details"] = {key: str(value) for key, value in exc.details.items()}
    return content


async def image_error_handler(request: Request, exc: ImageManipulationError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content=error_content(exc))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {exc}", "error_type": "internal"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the imagemanip exception handlers on app."""
    app.add_exception_handler(ImageManipulationError, image_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def safe_endpoint(func: Callable) -> Callable:
    """
    Decorator for synchronous endpoints.

    imagemanip errors and HTTPExceptions pass through to the registered
    handlers; anything else is logged and turned into a 500.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ImageManipulationError, HTTPException):
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Internal server error: {e}") from e

    return wrapper

"""
Global exception handlers.

All error responses share one shape: `{"message": "..."}`.

- HTTPException       -> its status code, `detail` as the message
- RequestValidationError -> 400 with a flattened "field: reason" message
- Exception (catch-all)  -> 500, details only go to the log
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

VALIDATION_PREFIX = "User validation failed"
INTERNAL_ERROR_MESSAGE = "Internal server error"

# Request parts FastAPI puts first in an error location.
_LOCATION_ROOTS = {"body", "query", "path", "header", "cookie"}


def register_error_handlers(app: FastAPI) -> None:
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_http_error_handler(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(
                "HTTP %s on %s: %s",
                exc.status_code,
                request.url.path,
                exc.detail,
                extra={"path": request.url.path, "method": request.method},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = format_validation_message(exc.errors())
        logger.warning(
            "Validation error: %s",
            message,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": message},
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s: %s",
            request.url.path,
            exc,
            exc_info=True,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": INTERNAL_ERROR_MESSAGE},
        )


def _field_path(loc: tuple[Any, ...] | list[Any]) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_ROOTS:
        parts = parts[1:]
    return ".".join(str(p) for p in parts)


def _reason(msg: str) -> str:
    # Pydantic prefixes messages raised from validators with "Value error, ".
    return msg.removeprefix("Value error, ")


def format_validation_message(errors: list[dict[str, Any]]) -> str:
    """
    Flatten Pydantic errors into one line:
    "User validation failed: email: Field required, age: Input should be ..."
    """
    details = []
    for error in errors:
        field = _field_path(error.get("loc", ()))
        reason = _reason(str(error.get("msg", "invalid value")))
        details.append(f"{field}: {reason}" if field else reason)
    if not details:
        return VALIDATION_PREFIX
    return f"{VALIDATION_PREFIX}: " + ", ".join(details)

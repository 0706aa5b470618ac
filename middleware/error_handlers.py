"""
Application-wide exception handlers.

- Request validation failures -> 400 with one entry per offending field.
- Anything unhandled -> opaque 500; the traceback only goes to the log.
"""
import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "cookie", "header"}


def _field_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for err in exc.errors():
        loc = list(err.get("loc") or [])
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        msg = str(err.get("msg", "Invalid value"))
        # pydantic prefixes messages raised from validators
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        out.append({
            "field": ".".join(str(p) for p in loc) or None,
            "message": msg,
            "type": err.get("type"),
        })
    return out


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = _field_errors(exc)
    logger.warning(
        "request_validation_failed path=%s fields=%s",
        request.scope.get("path", ""),
        ",".join(str(e["field"]) for e in errors),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_error path=%s error_type=%s",
        request.scope.get("path", ""),
        type(exc).__name__,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

FastAPI integrates these via movie_reviews/main.py. Errors that escape a route
(authentication, request validation, unexpected failures) are rendered as
application/problem+json with a stable schema. Review operations answer their
own `{error}` bodies and never reach the global handler.
"""

import logging

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from movie_reviews.core.exceptions import AppException

logger = logging.getLogger(__name__)


def _problem(title: str, detail: str, status_code: int, request: Request, **extra) -> JSONResponse:
    content = {
        "type": "about:blank",
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": str(request.url),
    }
    rid = getattr(request.state, "request_id", None)
    if rid:
        content["request_id"] = rid
    content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(content),
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    extra = {}
    if isinstance(exc, AppException):
        extra["code"] = exc.code
        if exc.details is not None:
            extra["details"] = exc.details
    response = _problem(title, detail, exc.status_code, request, **extra)
    for key, value in (getattr(exc, "headers", None) or {}).items():
        response.headers[key] = value
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    return _problem(
        "Validation error",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        request,
        errors=exc.errors(),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals from clients; keep the traceback in the logs.
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _problem("Internal Server Error", "An unexpected error occurred.", status.HTTP_500_INTERNAL_SERVER_ERROR, request)


__all__ = [
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]

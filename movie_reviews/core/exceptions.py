# movie_reviews/core/exceptions.py
from __future__ import annotations

"""
MovieReviews · Application Exceptions
=====================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets us attach structured metadata and integrate cleanly with the problem+json
shape from `movie_reviews.core.exception_handlers`.

Key ideas
---------
- One base `AppException` that carries `code`, `request_id`, `user_id`, `details`.
- HTTP-facing domain exceptions inherit from it and set sane defaults.
- Storage-level errors (`ReviewStoreError` family) are plain exceptions; the
  review routes translate them into `{error}` bodies themselves.

Usage
-----
    raise InvalidMovieIdException(movie_id=raw)
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "InvalidMovieIdException",
    "InvalidTokenException",
    "ReviewStoreError",
    "ConcurrentUpdateError",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/401/404/409/500).
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    request_id : str | None
        Optional request correlation id.
    user_id : str | None
        Caller id for auditing/context.
    details : Any
        Machine-readable details (e.g., the offending value).
    headers : dict | None
        Optional headers (e.g., `{"WWW-Authenticate": "Bearer"}`).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.request_id: Optional[str] = request_id
        self.user_id: Optional[str] = user_id
        self.details: Optional[Any] = details


# ──────────────────────────────────────────────────────────────
# 🎬 Input exceptions
# ──────────────────────────────────────────────────────────────
class InvalidMovieIdException(AppException):
    """Raised when a movie id is neither a slug nor a UUID-like string."""

    def __init__(self, *, movie_id: str, request_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Invalid movie id",
            request_id=request_id,
            details={"movie_id": movie_id[:128]},
        )


# ──────────────────────────────────────────────────────────────
# 🔑 Auth/Token exceptions
# ──────────────────────────────────────────────────────────────
class InvalidTokenException(AppException):
    """Raised for missing, invalid or expired tokens (401 by default)."""

    def __init__(
        self,
        *,
        detail: str = "Invalid or expired token",
        status_code: int = status.HTTP_401_UNAUTHORIZED,
        headers: Optional[Dict[str, str]] = None,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            status_code=status_code,
            message=detail,
            request_id=request_id,
            headers=headers or {"WWW-Authenticate": "Bearer"},
        )


# ──────────────────────────────────────────────────────────────
# 🗄️ Storage exceptions (not HTTP-aware)
# ──────────────────────────────────────────────────────────────
class ReviewStoreError(Exception):
    """Base class for errors raised by review repositories."""


class ConcurrentUpdateError(ReviewStoreError):
    """The review changed between load and save (optimistic lock lost)."""

    def __init__(self, review_id: str) -> None:
        super().__init__(f"Review {review_id} was modified concurrently")
        self.review_id = review_id

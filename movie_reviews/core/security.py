# movie_reviews/core/security.py
from __future__ import annotations

"""
MovieReviews · Caller identity
==============================
- `get_current_user`: FastAPI dependency; the caller must present a valid
  access token (401 otherwise).
- `get_optional_user`: same, but anonymous requests resolve to `None`.
- `create_access_token`: mint a signed access token (tests, tooling).

The identity service owns accounts; this API trusts the token's subject and
does not load the user row on each request.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4
import logging

from fastapi import Request
from jose import jwt

from movie_reviews.core.config import settings
from movie_reviews.core.jwt import decode_access_token, get_bearer_token

logger = logging.getLogger("security")

DEV_USER_HEADER = "X-User-Id"


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller as seen by the review routes."""

    id: str
    token_payload: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def normalize_user_id(raw: str) -> str:
    """Canonicalize UUID-shaped ids so comparisons with stored ids are stable."""
    value = str(raw).strip()
    try:
        return str(UUID(value))
    except ValueError:
        return value


# ───────────────────────────────────────────────
# 🎟️ Access token creation
# ───────────────────────────────────────────────
def create_access_token(user_id: str, *, expires_minutes: Optional[int] = None) -> str:
    """Create a signed **access token** for `user_id`."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "nbf": now,
        "jti": str(uuid4()),
        "token_type": "access",
    }
    if settings.JWT_ISSUER:
        payload["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(payload, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=settings.JWT_ALGORITHM)


# ───────────────────────────────────────────────
# 👤 Dependencies
# ───────────────────────────────────────────────
def _dev_user(request: Request) -> Optional[CurrentUser]:
    """Dev-only identity from `X-User-Id` (requires `ALLOW_DEV_AUTH`)."""
    if not settings.ALLOW_DEV_AUTH:
        return None
    raw = (request.headers.get(DEV_USER_HEADER) or "").strip()
    if not raw:
        return None
    return CurrentUser(id=normalize_user_id(raw))


async def get_current_user(request: Request) -> CurrentUser:
    """Authenticate the caller from the presented **access** token.

    Steps:
    1) Dev header shortcut (only when `ALLOW_DEV_AUTH` is on).
    2) Decode & validate the Bearer token.
    3) Expose `request.state.user_id` for per-user rate limiting.
    """
    user = _dev_user(request)
    if user is None:
        payload = decode_access_token(get_bearer_token(request))
        user = CurrentUser(
            id=normalize_user_id(payload.get("sub") or payload.get("user_id")),
            token_payload=payload,
        )

    request.state.user_id = user.id
    logger.debug("[Auth] Authenticated", extra={"user_id": user.id})
    return user


async def get_optional_user(request: Request) -> Optional[CurrentUser]:
    """Like `get_current_user`, but anonymous callers resolve to `None`.

    A request that *does* carry credentials must carry valid ones.
    """
    has_dev_header = settings.ALLOW_DEV_AUTH and request.headers.get(DEV_USER_HEADER)
    if not request.headers.get("Authorization") and not has_dev_header:
        return None
    return await get_current_user(request)


__all__ = [
    "CurrentUser",
    "normalize_user_id",
    "create_access_token",
    "get_current_user",
    "get_optional_user",
]

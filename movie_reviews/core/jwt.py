# movie_reviews/core/jwt.py
from __future__ import annotations

"""
MovieReviews · JWT helpers
==========================
- `decode_token` with optional issuer/audience enforcement
- Case-insensitive Bearer token extraction

Notes
-----
- Token *creation* lives in `movie_reviews.core.security`.
- Tokens are issued by the identity service; this API only verifies them.
- No `leeway` is passed to python-jose (unsupported); standard `exp`/`nbf`/`iat` checks apply.
"""

from typing import Any, Dict, Optional, Sequence
import logging

from fastapi import Request
from jose import ExpiredSignatureError, JWTError, jwt

from movie_reviews.core.config import settings
from movie_reviews.core.exceptions import InvalidTokenException

logger = logging.getLogger("auth")


def _get_expected_issuer() -> Optional[str]:
    return settings.JWT_ISSUER or None


def _get_expected_audience() -> Optional[str]:
    return settings.JWT_AUDIENCE or None


# ─────────────────────────────────────────────────────────────
# 🔓 Decode JWT Token
# ─────────────────────────────────────────────────────────────
def decode_token(
    token: str,
    *,
    expected_types: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Decode and validate a JWT.

    Security checks
    ---------------
    1) Verify signature and standard claims (exp/nbf/iat)
    2) Enforce issuer/audience when configured
    3) Require a subject (`sub` or legacy `user_id`)
    4) Optional `token_type` membership

    Raises
    ------
    InvalidTokenException
        401 for invalid/expired tokens or type mismatch.
    """
    issuer = _get_expected_issuer()
    audience = _get_expected_audience()
    options: Dict[str, Any] = {"verify_aud": bool(audience)}

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
            options=options,
            audience=audience,
            issuer=issuer,
        )
    except ExpiredSignatureError:
        logger.info("Token expired.")
        raise InvalidTokenException(detail="Token has expired.")
    except JWTError as e:
        logger.warning("JWT decoding failed: %s", e)
        raise InvalidTokenException(detail="Invalid token.")

    sub = payload.get("sub") or payload.get("user_id")
    if not sub:
        logger.warning("Missing user_id/sub in token payload.")
        raise InvalidTokenException(detail="Token missing user ID.")

    if expected_types is not None:
        token_type = payload.get("token_type")
        if token_type not in set(expected_types):
            logger.warning("Token type mismatch: got %r, expected one of %s", token_type, list(expected_types))
            raise InvalidTokenException(detail="Invalid token type.")

    return payload


# ─────────────────────────────────────────────────────────────
# 📥 Extract Bearer Token from Authorization Header
# ─────────────────────────────────────────────────────────────
def get_bearer_token(request: Request) -> str:
    """Extract a Bearer token from the `Authorization` header (case-insensitive)."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise InvalidTokenException(detail="Missing Authorization header.")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Malformed Authorization header.")
        raise InvalidTokenException(detail="Invalid Authorization scheme.")

    token = parts[1].strip()
    if not token:
        raise InvalidTokenException(detail="Empty token.")

    return token


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode a token and enforce `token_type == 'access'`."""
    return decode_token(token, expected_types=["access"])


__all__ = [
    "decode_token",
    "decode_access_token",
    "get_bearer_token",
]

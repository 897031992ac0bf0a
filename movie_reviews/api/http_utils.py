# movie_reviews/api/http_utils.py
from __future__ import annotations

"""
HTTP helpers shared by the review routes.

- `sanitize_movie_id`: path-parameter validation (400 on bad format).
- `get_client_ip`: proxy-aware (opt-in) client address for audit logs.
- `json_no_store`: JSON response with strict no-store caching headers.
"""

import ipaddress
import os
import re
from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from movie_reviews.core.exceptions import InvalidMovieIdException

__all__ = [
    "sanitize_movie_id",
    "get_client_ip",
    "json_no_store",
]


# ─────────────────────────────────────────────────────────────────────────────
# 🧼 Input sanitation
# ─────────────────────────────────────────────────────────────────────────────

_SANITIZE_SLUG_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def sanitize_movie_id(movie_id: str) -> str:
    """Validate a movie identifier.

    Accepts slugs matching ``[A-Za-z0-9_-]{1,128}``; hyphenated UUID strings
    are slugs as well.

    Raises
    ------
    InvalidMovieIdException
        400 when the format is invalid.
    """
    if _SANITIZE_SLUG_RE.match(movie_id):
        return movie_id
    raise InvalidMovieIdException(movie_id=movie_id)


# ─────────────────────────────────────────────────────────────────────────────
# 🌐 Client IP Resolution (proxy aware, opt-in)
# ─────────────────────────────────────────────────────────────────────────────

def _parse_ip(value: Optional[str]) -> Optional[str]:
    """Parse an IP (v4/v6) possibly carrying a zone id or port; None if invalid."""
    if not value:
        return None
    value = value.split("%", 1)[0].strip()
    if value.startswith("["):
        host = value.split("]", 1)[0].lstrip("[")
    else:
        host = value.split(":")[0] if value.count(":") == 1 else value
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return None
    return host


def get_client_ip(request: Request) -> str:
    """Best-guess client IP.

    Uses the socket peer unless ``TRUST_FORWARD_HEADERS=1``, in which case
    ``X-Real-Ip`` then the first ``X-Forwarded-For`` hop are consulted.
    """
    peer_ip = _parse_ip(request.client.host if request.client else None)
    if os.environ.get("TRUST_FORWARD_HEADERS") not in {"1", "true", "True"}:
        return peer_ip or "unknown"

    ip = _parse_ip(request.headers.get("x-real-ip"))
    if ip:
        return ip
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = _parse_ip(xff.split(",")[0].strip())
        if ip:
            return ip
    return peer_ip or "unknown"


# ─────────────────────────────────────────────────────────────────────────────
# 📦 Responses
# ─────────────────────────────────────────────────────────────────────────────

def json_no_store(payload: Any, status_code: int = 200) -> JSONResponse:
    """Return a JSON response with strict `no-store` caching."""
    resp = JSONResponse(content=jsonable_encoder(payload), status_code=status_code)
    resp.headers["Cache-Control"] = "no-store"
    resp.headers["Pragma"] = "no-cache"
    resp.headers["Expires"] = "0"
    return resp

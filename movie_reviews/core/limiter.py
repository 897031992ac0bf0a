from __future__ import annotations

"""
MovieReviews · HTTP Rate Limiting (SlowAPI)
===========================================

Highlights
----------
- **User/IP aware** keying: per-user when auth sets `request.state.user_id`,
  else per-client-IP (using XFF/X-Real-IP/client.host).
- **Exemptions**: probes opt out via `rate_limit_exempt()`.
- **Test/CI friendly**:
    - `RATE_LIMIT_NAMESPACE`: prefixes keys so parallel runs don't collide.
    - `RATE_LIMIT_ENABLED=false`: middleware is not installed at all.
    - `RATE_LIMIT_TEST_BYPASS=1`: limiter is built disabled (no counting).
- **Backends**: Redis via `RATELIMIT_STORAGE_URI` or in-memory fallback.

Environment
-----------
RATE_LIMIT_ENABLED           default: "true"
DEFAULT_RATE_LIMIT           default: "100/minute"
RATELIMIT_STORAGE_URI        default: "" (falls back to "memory://")
RATELIMIT_STRATEGY           default: "moving-window"
RATE_LIMIT_NAMESPACE         default: ""
RATE_LIMIT_TEST_BYPASS       default: "" (truthy to bypass in tests/CI)
"""

import os
from typing import Callable, List, Optional

from dotenv import load_dotenv
from loguru import logger
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

# ──────────────────────────────────────────────────────────────
# ⚙️ Environment & defaults
# ──────────────────────────────────────────────────────────────
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
DEFAULT_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "100/minute").strip()
STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "").strip()
STRATEGY = os.getenv("RATELIMIT_STRATEGY", "moving-window").strip()
NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "").strip()
TEST_BYPASS = os.getenv("RATE_LIMIT_TEST_BYPASS", "").strip().lower() in _TRUTHY


# ──────────────────────────────────────────────────────────────
# 🧠 Keying
# ──────────────────────────────────────────────────────────────
def _client_ip(request: Request) -> str:
    """
    Best-effort client IP:
    1) X-Forwarded-For (first hop)
    2) X-Real-IP
    3) ASGI client.host
    """
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return get_remote_address(request) or "unknown"


def _with_namespace(key: str) -> str:
    return f"{NAMESPACE}:{key}" if NAMESPACE else key


def get_user_rate_limit_key(request: Request) -> str:
    """
    Build a limiter key. Priority:
      1) user:<user_id>  (when auth sets `request.state.user_id`)
      2) ip:<addr>       (fallback)
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return _with_namespace(f"user:{user_id}")
    return _with_namespace(f"ip:{_client_ip(request)}")


# ──────────────────────────────────────────────────────────────
# 🧰 Limiter instance (Redis / memory)
# ──────────────────────────────────────────────────────────────
def _build_default_limits() -> List[str]:
    return [chunk.strip() for chunk in DEFAULT_LIMIT.split(",") if chunk.strip()]


def _make_limiter() -> Optional[Limiter]:
    storage_uri = STORAGE_URI or "memory://"
    try:
        limiter = Limiter(
            key_func=get_user_rate_limit_key,
            default_limits=_build_default_limits(),
            headers_enabled=True,
            storage_uri=storage_uri,
            strategy=STRATEGY,
            enabled=not TEST_BYPASS,
        )
    except Exception as e:
        logger.error(f"❌ Failed to init Limiter; limits disabled | err={e}")
        return None

    logger.info(
        "✅ RateLimiter ready | enabled={} | default={} | storage={} | ns={} | test_bypass={}",
        RATE_LIMIT_ENABLED, _build_default_limits(), storage_uri, NAMESPACE, TEST_BYPASS,
    )
    return limiter


limiter: Optional[Limiter] = _make_limiter()


def rate_limit_exempt() -> Callable:
    """Explicitly exempt a route from limiting."""
    if limiter is None:
        def _noop(fn: Callable) -> Callable:
            return fn
        return _noop
    return limiter.exempt


# ──────────────────────────────────────────────────────────────
# 🔧 Installer
# ──────────────────────────────────────────────────────────────
def install_rate_limiter(app) -> bool:
    """
    Attach SlowAPI middleware. Returns True when installed.

    Honors RATE_LIMIT_ENABLED: middleware is not installed when disabled.
    """
    if not limiter:
        logger.warning("RateLimiter not initialized; middleware not installed")
        return False
    if not RATE_LIMIT_ENABLED:
        logger.info("RateLimiter disabled by env; middleware not installed")
        return False

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    logger.info("✅ SlowAPI middleware installed")
    return True

# movie_reviews/main.py
from __future__ import annotations

"""
# MovieReviews API · Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the movie review service.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order**:
  1) request id → 2) CORS → 3) gzip → 4) rate limits → 5) strip `Server` header.
- Centralized problem+json exception handling.

## Probes
- `/healthz`: liveness (process up).
- `/readyz`: readiness (review store reachable).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable
import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

# Importing sets up Loguru sinks and the stdlib intercept.
from movie_reviews.core import logger as _logsetup  # noqa: F401
from movie_reviews.api.v1.routers import router as api_v1_router
from movie_reviews.core.config import settings
from movie_reviews.core.exception_handlers import (
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from movie_reviews.core.limiter import install_rate_limiter, rate_limit_exempt
from movie_reviews.db.session import async_engine, db_healthcheck
from movie_reviews.middleware.request_id import RequestIDMiddleware

logger = logging.getLogger("movie_reviews")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log a startup banner; dispose the DB engine on shutdown."""
    logger.info("✅ MovieReviews API starting up (backend=%s)", settings.REVIEWS_BACKEND)
    try:
        yield
    finally:
        try:
            await async_engine.dispose()
            logger.info("🛑 Database engine disposed")
        except Exception:
            logger.exception("Error disposing DB engine")
        logger.info("🛑 MovieReviews API shutting down")


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: application with middleware, exception handlers, the v1
        review routes and health/readiness endpoints.
    """
    docs_url = "/docs" if settings.ENABLE_DOCS else None
    redoc_url = "/redoc" if settings.ENABLE_DOCS else None
    openapi_url = "/openapi.json" if settings.ENABLE_DOCS else None

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        lifespan=lifespan,
    )

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)

    origins = settings.cors_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
            expose_headers=["X-Request-ID"],
        )

    app.add_middleware(GZipMiddleware, minimum_size=1024)

    if install_rate_limiter(app):
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        """Remove the `Server` header to avoid leaking implementation details."""
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    # ── Exception handlers (problem+json) ───────────────────────────────────
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)           # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)             # type: ignore[arg-type]

    # ── Routers (versioned API) ─────────────────────────────────────────────
    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    @rate_limit_exempt()
    async def healthz(request: Request) -> dict[str, bool]:
        """Liveness probe: `{"ok": true}` while the process is responsive."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    @rate_limit_exempt()
    async def readyz(request: Request) -> JSONResponse:
        """
        Readiness probe.

        The in-memory backend is always ready; the SQL backend needs a
        successful `SELECT 1`. Answers 503 when not ready.
        """
        if settings.REVIEWS_BACKEND == "memory":
            store_ok = True
        else:
            store_ok = await db_healthcheck()
        body = {"ready": store_ok, "checks": {"store": store_ok, "backend": settings.REVIEWS_BACKEND}}
        return JSONResponse(body, status_code=200 if store_ok else 503)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Minimal root that points to docs (when enabled)."""
        return JSONResponse({
            "name": settings.PROJECT_NAME,
            "docs": app.docs_url or "",
            "version": settings.VERSION,
        })

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn movie_reviews.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "movie_reviews.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        workers=int(os.getenv("WORKERS", "1")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )

"""
🧭 MovieReviews • API v1 Router Aggregator
=========================================

Exports the combined `router` and the individual sub-routers.

    from movie_reviews.api.v1.routers import router as api_v1_router
    app.include_router(api_v1_router, prefix="/api/v1")

Auth lives in the child routers; this layer only composes them.
"""

from fastapi import APIRouter

from .reviews import router as reviews_router


def build_v1_router() -> APIRouter:
    """Compose the API v1 surface into a single `APIRouter`."""
    r = APIRouter()
    r.include_router(reviews_router)
    return r


router = build_v1_router()


__all__ = [
    "router",
    "build_v1_router",
    "reviews_router",
]

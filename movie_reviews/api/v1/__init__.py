"""Versioned API (v1).

Import the aggregated router from the routers subpackage:

    from movie_reviews.api.v1.routers import router as api_v1_router
"""

# Keep `routers` unshadowed so dotted monkeypatch paths resolve in tests.

__all__ = []

# movie_reviews/db/base.py
"""
MovieReviews · SQLAlchemy Base registry
=======================================

Import all ORM models so their tables are registered on `Base.metadata`
(Alembic autogeneration, `create_all` in tests).

Keep this file import-only; no runtime logic.
"""

from movie_reviews.db.base_class import Base

from movie_reviews.db.models.user import User
from movie_reviews.db.models.review import Review, ReviewLike

__all__ = ["Base", "User", "Review", "ReviewLike"]

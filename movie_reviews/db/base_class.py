# movie_reviews/db/base_class.py
from __future__ import annotations

"""
# MovieReviews · SQLAlchemy Base

SQLAlchemy 2.0 declarative **Base** with:
- Global **naming conventions** (Alembic-friendly constraint names)
- Automatic **snake_case `__tablename__`** when a model doesn't set one
- Compact `__repr__` for debugging
"""

import re

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, declared_attr

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def _to_snake(name: str) -> str:
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


class Base(DeclarativeBase):
    """Declarative base for all MovieReviews models."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return _to_snake(cls.__name__)

    def __repr__(self) -> str:  # pragma: no cover
        attrs = [f"{key}={getattr(self, key)!r}" for key in ("id", "movie_id", "review_id", "user_id") if hasattr(self, key)]
        return f"{self.__class__.__name__}({', '.join(attrs)})"


__all__ = ["Base", "NAMING_CONVENTION"]
